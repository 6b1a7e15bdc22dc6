"""
Cart Service - per-user shopping cart

One document per (user, product) line in the ``cart`` collection.
Pricing (promo codes, shipping, tax) is computed on read.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from storefront.core.config import settings
from storefront.core.database import CART, NO_ID, PRODUCTS
from storefront.core.exceptions import InvalidPromoCodeError, ProductNotFoundError
from storefront.core.logging_config import logger


def resolve_promo_rate(promo_code: Optional[str], promo_codes: Optional[Dict[str, float]] = None) -> float:
    """
    Discount rate for a promo code (case-insensitive). Blank means no code.

    Raises:
        InvalidPromoCodeError: the code is not known
    """
    if not promo_code or not promo_code.strip():
        return 0.0
    codes = promo_codes if promo_codes is not None else settings.get_promo_codes()
    code = promo_code.strip().upper()
    if code not in codes:
        raise InvalidPromoCodeError(promo_code)
    return codes[code]


def calculate_summary(
    subtotal: float,
    item_count: int,
    promo_code: Optional[str] = None,
    promo_codes: Optional[Dict[str, float]] = None,
) -> dict:
    """
    Price a cart.

    shipping is free above SHIPPING_FREE_THRESHOLD and for an empty cart;
    tax applies to the discounted subtotal. Amounts are rounded to cents.
    """
    discount_rate = resolve_promo_rate(promo_code, promo_codes)
    discount = subtotal * discount_rate

    if item_count == 0 or subtotal > settings.SHIPPING_FREE_THRESHOLD:
        shipping = 0.0
    else:
        shipping = settings.SHIPPING_FLAT_RATE

    tax = (subtotal - discount) * settings.SALES_TAX_RATE
    total = subtotal - discount + shipping + tax

    return {
        "subtotal": round(subtotal, 2),
        "promoCode": promo_code.strip().upper() if discount_rate else None,
        "discountRate": discount_rate,
        "discount": round(discount, 2),
        "shipping": round(shipping, 2),
        "tax": round(tax, 2),
        "total": round(total, 2),
        "itemCount": item_count,
    }


class CartService:
    """Service for cart lines of a single user"""

    async def _lines(self, db: AsyncIOMotorDatabase, user_id: int) -> List[dict]:
        return await db[CART].find({"userId": user_id}, NO_ID, sort=[("createdAt", 1)]).to_list(None)

    async def get_cart(self, db: AsyncIOMotorDatabase, user_id: int) -> dict:
        """
        The user's cart lines joined with their products.

        Lines whose product was deleted keep ``product: None`` and do not
        count towards ``itemCount`` or ``total``.
        """
        lines = await self._lines(db, user_id)
        product_ids = [line["productId"] for line in lines]
        products = await db[PRODUCTS].find({"id": {"$in": product_ids}}, NO_ID).to_list(None)
        by_id = {p["id"]: p for p in products}

        items = []
        item_count = 0
        total = 0.0
        for line in lines:
            product = by_id.get(line["productId"])
            items.append({
                "productId": line["productId"],
                "quantity": line["quantity"],
                "product": product,
            })
            if product is not None:
                item_count += line["quantity"]
                total += product.get("price", 0) * line["quantity"]

        return {"items": items, "itemCount": item_count, "total": round(total, 2)}

    async def _ensure_product(self, db: AsyncIOMotorDatabase, product_id: int) -> None:
        if not await db[PRODUCTS].find_one({"id": product_id}, {"id": 1}):
            raise ProductNotFoundError(product_id)

    async def add_item(self, db: AsyncIOMotorDatabase, user_id: int, product_id: int, quantity: int = 1) -> dict:
        """Add quantity of a product, merging into an existing line"""
        await self._ensure_product(db, product_id)
        now = datetime.now(timezone.utc)

        await db[CART].update_one(
            {"userId": user_id, "productId": product_id},
            {
                "$inc": {"quantity": quantity},
                "$set": {"updatedAt": now},
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
        )

        logger.log_db_operation("add_item", CART, 1, user_id=user_id, product_id=product_id, quantity=quantity)
        return await self.get_cart(db, user_id)

    async def update_item(self, db: AsyncIOMotorDatabase, user_id: int, product_id: int, quantity: int) -> dict:
        """Set a line's quantity; zero or less removes the line"""
        if quantity <= 0:
            return await self.remove_item(db, user_id, product_id)

        await self._ensure_product(db, product_id)
        now = datetime.now(timezone.utc)
        await db[CART].update_one(
            {"userId": user_id, "productId": product_id},
            {
                "$set": {"quantity": quantity, "updatedAt": now},
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
        )
        return await self.get_cart(db, user_id)

    async def remove_item(self, db: AsyncIOMotorDatabase, user_id: int, product_id: int) -> dict:
        await db[CART].delete_one({"userId": user_id, "productId": product_id})
        return await self.get_cart(db, user_id)

    async def clear_cart(self, db: AsyncIOMotorDatabase, user_id: int) -> dict:
        result = await db[CART].delete_many({"userId": user_id})
        logger.log_db_operation("clear", CART, result.deleted_count, user_id=user_id)
        return await self.get_cart(db, user_id)

    async def get_summary(self, db: AsyncIOMotorDatabase, user_id: int, promo_code: Optional[str] = None) -> dict:
        cart = await self.get_cart(db, user_id)
        return calculate_summary(cart["total"], cart["itemCount"], promo_code)


cart_service = CartService()
