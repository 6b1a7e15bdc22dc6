from fastapi import APIRouter, Depends, Query, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from storefront.core.database import get_db
from storefront.core.rate_limiter import DEFAULT_LIMIT, limiter
from storefront.modules.auth.dependencies import get_current_admin, get_optional_user
from storefront.schemas.common import success_response
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.image_store import ImageStore, get_image_store
from storefront.services.product_service import product_service

router = APIRouter()


@router.get("")
@limiter.limit(DEFAULT_LIMIT)
async def list_products(
    request: Request,
    search: Optional[str] = Query(None, max_length=200),
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=5),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncIOMotorDatabase = Depends(get_db),
    viewer: Optional[dict] = Depends(get_optional_user),
):
    """
    List products, sorted by id.

    Signed-in viewers are rate limited per account instead of per IP.
    """
    products = await product_service.list_products(
        db,
        search=search,
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        min_rating=min_rating,
        limit=limit,
    )
    return success_response(products)


@router.get("/featured")
async def featured_products(
    limit: int = Query(6, ge=1, le=50),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Highest rated products"""
    return success_response(await product_service.get_featured(db, limit))


@router.get("/{product_id}")
async def get_product(
    product_id: int,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return success_response(await product_service.get_product(db, product_id))


@router.get("/{product_id}/related")
async def related_products(
    product_id: int,
    limit: int = Query(4, ge=1, le=20),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Other products in the same category"""
    return success_response(await product_service.get_related(db, product_id, limit))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Create product (Admin only)"""
    product = await product_service.create_product(db, product_data)
    return success_response(product, "Product created successfully")


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Update product (Admin only)"""
    product = await product_service.update_product(db, product_id, product_data)
    return success_response(product, "Product updated successfully")


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    db: AsyncIOMotorDatabase = Depends(get_db),
    image_store: ImageStore = Depends(get_image_store),
    admin: dict = Depends(get_current_admin)
):
    """Delete product, its stored images and its cart lines (Admin only)"""
    result = await product_service.delete_product(db, product_id, image_store)
    return success_response(result, "Product deleted successfully")
