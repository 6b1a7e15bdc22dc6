from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from storefront.core.database import get_db
from storefront.modules.auth.dependencies import get_current_user
from storefront.schemas.cart import CartItemAdd, CartItemUpdate
from storefront.schemas.common import success_response
from storefront.services.cart_service import cart_service

router = APIRouter()


@router.get("")
async def get_cart(
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Current user's cart with product details"""
    return success_response(await cart_service.get_cart(db, current_user["id"]))


@router.get("/summary")
async def get_cart_summary(
    promo_code: Optional[str] = Query(None, alias="promoCode", max_length=50),
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Subtotal, discount, shipping, tax and total of the current cart"""
    return success_response(await cart_service.get_summary(db, current_user["id"], promo_code))


@router.post("")
async def add_to_cart(
    item: CartItemAdd,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    cart = await cart_service.add_item(db, current_user["id"], item.product_id, item.quantity)
    return success_response(cart, "Item added to cart")


@router.put("")
async def update_cart_item(
    item: CartItemUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    cart = await cart_service.update_item(db, current_user["id"], item.product_id, item.quantity)
    return success_response(cart, "Cart updated")


@router.delete("")
async def remove_from_cart(
    product_id: Optional[int] = Query(None, alias="productId"),
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Remove one product, or clear the cart when no productId is given"""
    if product_id is None:
        cart = await cart_service.clear_cart(db, current_user["id"])
        return success_response(cart, "Cart cleared")

    cart = await cart_service.remove_item(db, current_user["id"], product_id)
    return success_response(cart, "Item removed from cart")
