"""
Product Service - Business logic for the product catalog

Handles:
- Catalog queries (search, filters, featured, related)
- Product CRUD (Admin only)
- Gallery normalisation on every write
- Cleanup of stored images and cart lines on delete
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from storefront.core.config import settings
from storefront.core.database import CART, NO_ID, PRODUCTS, next_sequence
from storefront.core.exceptions import ProductNotFoundError, UnknownCategoryError
from storefront.core.logging_config import logger
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.category_service import category_service
from storefront.services.image_store import ImageStore

ALL_CATEGORIES = "All"


def normalize_gallery(product: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring a product's gallery into canonical form (in place):

    - images sorted by ``order`` and renumbered 0..n-1
    - exactly one primary image (the first flagged one, else the first)
    - ``image`` and ``imageId`` mirror the primary image
    - without images, ``image`` falls back to the placeholder
    """
    images = sorted(product.get("images") or [], key=lambda img: img.get("order", 0))
    primary_index = next((i for i, img in enumerate(images) if img.get("isPrimary")), 0)

    product["images"] = [
        {**img, "order": index, "isPrimary": index == primary_index}
        for index, img in enumerate(images)
    ]

    if product["images"]:
        primary = product["images"][primary_index]
        product["image"] = primary["url"]
        product["imageId"] = primary.get("id")
    elif not product.get("image"):
        product["image"] = settings.DEFAULT_PRODUCT_IMAGE

    return product


def build_product_query(
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    in_stock: Optional[bool] = None,
    min_rating: Optional[float] = None,
) -> Dict[str, Any]:
    """Translate catalog filters into a Mongo filter document"""
    query: Dict[str, Any] = {}

    if search and search.strip():
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        query["$or"] = [
            {"name": pattern},
            {"description": pattern},
            {"category": pattern},
        ]

    if category and category != ALL_CATEGORIES:
        query["category"] = category

    price: Dict[str, float] = {}
    if min_price is not None:
        price["$gte"] = min_price
    if max_price is not None:
        price["$lte"] = max_price
    if price:
        query["price"] = price

    if in_stock is not None:
        query["inStock"] = in_stock

    if min_rating is not None:
        query["rating"] = {"$gte": min_rating}

    return query


def gallery_image_ids(product: Dict[str, Any]) -> List[str]:
    """Stored blob ids referenced by a product (gallery and legacy imageId)"""
    ids = [img["id"] for img in product.get("images") or [] if img.get("id")]
    if product.get("imageId") and product["imageId"] not in ids:
        ids.append(product["imageId"])
    return ids


class ProductService:
    """Service for the product catalog"""

    async def list_products(
        self,
        db: AsyncIOMotorDatabase,
        search: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock: Optional[bool] = None,
        min_rating: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        query = build_product_query(search, category, min_price, max_price, in_stock, min_rating)
        return await db[PRODUCTS].find(query, NO_ID, sort=[("id", 1)], limit=limit or 0).to_list(None)

    async def get_featured(self, db: AsyncIOMotorDatabase, limit: int = 6) -> List[dict]:
        """Highest rated products at or above the featured threshold"""
        return await db[PRODUCTS].find(
            {"rating": {"$gte": settings.FEATURED_MIN_RATING}},
            NO_ID,
            sort=[("rating", -1), ("id", 1)],
            limit=limit,
        ).to_list(None)

    async def get_product(self, db: AsyncIOMotorDatabase, product_id: int) -> dict:
        product = await db[PRODUCTS].find_one({"id": product_id}, NO_ID)
        if not product:
            raise ProductNotFoundError(product_id)
        return product

    async def get_related(self, db: AsyncIOMotorDatabase, product_id: int, limit: int = 4) -> List[dict]:
        """Other products from the same category"""
        product = await self.get_product(db, product_id)
        return await db[PRODUCTS].find(
            {"category": product.get("category"), "id": {"$ne": product_id}},
            NO_ID,
            sort=[("id", 1)],
            limit=limit,
        ).to_list(None)

    async def _canonical_category(self, db: AsyncIOMotorDatabase, name: str) -> str:
        category = await category_service.find_by_name(db, name)
        if not category:
            raise UnknownCategoryError(name, await category_service.category_names(db))
        return category["name"]

    async def create_product(self, db: AsyncIOMotorDatabase, data: ProductCreate) -> dict:
        """
        Create a new product (Admin only)

        Raises:
            UnknownCategoryError: category does not name an existing category
        """
        product = data.model_dump(by_alias=True)
        product["category"] = await self._canonical_category(db, data.category)
        normalize_gallery(product)

        now = datetime.now(timezone.utc)
        product["id"] = await next_sequence(db, PRODUCTS)
        product["createdAt"] = now
        product["updatedAt"] = now

        await db[PRODUCTS].insert_one(product)
        product.pop("_id", None)

        logger.log_db_operation("insert", PRODUCTS, 1, product_id=product["id"])
        return product

    async def update_product(self, db: AsyncIOMotorDatabase, product_id: int, data: ProductUpdate) -> dict:
        """Apply the fields present in ``data`` to a product (Admin only)"""
        existing = await self.get_product(db, product_id)

        # An explicit null only clears the optional image fields
        updates = {
            key: value
            for key, value in data.model_dump(by_alias=True, exclude_unset=True).items()
            if value is not None or key in ("image", "imageId")
        }
        if data.images is not None:
            updates["images"] = [img.model_dump(by_alias=True) for img in data.images]
        if "category" in updates:
            updates["category"] = await self._canonical_category(db, updates["category"])

        merged = normalize_gallery({**existing, **updates})
        for key in ("images", "image", "imageId"):
            updates[key] = merged.get(key)
        updates["updatedAt"] = datetime.now(timezone.utc)

        await db[PRODUCTS].update_one({"id": product_id}, {"$set": updates})
        logger.log_db_operation("update", PRODUCTS, 1, product_id=product_id)

        return await self.get_product(db, product_id)

    async def delete_product(self, db: AsyncIOMotorDatabase, product_id: int, image_store: ImageStore) -> dict:
        """
        Delete a product together with its stored images and the cart
        lines that reference it. Missing images are skipped.
        """
        product = await self.get_product(db, product_id)

        deleted_images = 0
        for image_id in gallery_image_ids(product):
            if await image_store.delete(image_id):
                deleted_images += 1
            else:
                logger.warning(f"[Products] Image {image_id} of product {product_id} was not in the store")

        await db[PRODUCTS].delete_one({"id": product_id})
        cart_result = await db[CART].delete_many({"productId": product_id})

        logger.log_db_operation(
            "delete", PRODUCTS, 1,
            product_id=product_id,
            deleted_images=deleted_images,
            removed_cart_lines=cart_result.deleted_count,
        )
        return {
            "id": product_id,
            "deletedImages": deleted_images,
            "removedCartLines": cart_result.deleted_count,
        }


product_service = ProductService()
