from fastapi import APIRouter
from storefront.api.v1.endpoints import auth, products, categories, cart, images, health
from storefront.api.v1.endpoints.admin import admin_router

api_router = APIRouter()

# Readiness check pings the database (use /health/ready for load balancers)
api_router.include_router(health.router)

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(categories.router, prefix="/categories", tags=["Categories"])
api_router.include_router(cart.router, prefix="/cart", tags=["Cart"])
api_router.include_router(images.router, tags=["Images"])
api_router.include_router(admin_router)
