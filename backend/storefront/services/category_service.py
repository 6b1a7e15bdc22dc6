"""
Category Service - Business logic for catalog categories

Handles:
- Category CRUD with case-insensitive unique names
- Cascading renames onto products
- Refusing deletes while products still use a category
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from storefront.core.database import CATEGORIES, NO_ID, PRODUCTS, next_sequence
from storefront.core.exceptions import (
    CategoryAlreadyExistsError,
    CategoryInUseError,
    CategoryNotFoundError,
)
from storefront.core.logging_config import logger
from storefront.schemas.category import CategoryCreate, CategoryUpdate


def name_matcher(name: str) -> Dict[str, str]:
    """Case-insensitive exact match on a category name"""
    return {"$regex": f"^{re.escape(name.strip())}$", "$options": "i"}


class CategoryService:
    """Service for managing product categories"""

    async def list_categories(self, db: AsyncIOMotorDatabase, active_only: bool = False) -> List[dict]:
        query = {"isActive": True} if active_only else {}
        return await db[CATEGORIES].find(query, NO_ID, sort=[("name", 1)]).to_list(None)

    async def get_category(self, db: AsyncIOMotorDatabase, category_id: int) -> dict:
        category = await db[CATEGORIES].find_one({"id": category_id}, NO_ID)
        if not category:
            raise CategoryNotFoundError(category_id)
        return category

    async def find_by_name(self, db: AsyncIOMotorDatabase, name: str) -> Optional[dict]:
        """Category whose name matches case-insensitively, if any"""
        if not name or not name.strip():
            return None
        return await db[CATEGORIES].find_one({"name": name_matcher(name)}, NO_ID)

    async def category_names(self, db: AsyncIOMotorDatabase) -> List[str]:
        categories = await db[CATEGORIES].find({}, {"name": 1, "_id": 0}, sort=[("name", 1)]).to_list(None)
        return [c["name"] for c in categories]

    async def create_category(self, db: AsyncIOMotorDatabase, data: CategoryCreate) -> dict:
        """
        Create a new category (Admin only)

        Raises:
            CategoryAlreadyExistsError: name already used, ignoring case
        """
        name = data.name.strip()
        if await self.find_by_name(db, name):
            raise CategoryAlreadyExistsError(name)

        now = datetime.now(timezone.utc)
        category = {
            "id": await next_sequence(db, CATEGORIES),
            "name": name,
            "description": (data.description or "").strip(),
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }
        await db[CATEGORIES].insert_one(category)
        category.pop("_id", None)

        logger.log_db_operation("insert", CATEGORIES, 1, category_id=category["id"])
        return category

    async def update_category(self, db: AsyncIOMotorDatabase, category_id: int, data: CategoryUpdate) -> dict:
        """
        Update a category. A rename is applied to every product filed
        under the old name.
        """
        existing = await self.get_category(db, category_id)

        name = data.name.strip()
        duplicate = await db[CATEGORIES].find_one(
            {"id": {"$ne": category_id}, "name": name_matcher(name)}
        )
        if duplicate:
            raise CategoryAlreadyExistsError(name)

        updates: Dict[str, Any] = {
            "name": name,
            "isActive": True if data.is_active is None else data.is_active,
            "updatedAt": datetime.now(timezone.utc),
        }
        if data.description is not None:
            updates["description"] = data.description.strip()

        await db[CATEGORIES].update_one({"id": category_id}, {"$set": updates})

        old_name = existing["name"]
        if old_name != name:
            result = await db[PRODUCTS].update_many(
                {"category": name_matcher(old_name)},
                {"$set": {"category": name, "updatedAt": updates["updatedAt"]}},
            )
            logger.log_db_operation(
                "rename_category", PRODUCTS, result.modified_count,
                old_name=old_name, new_name=name,
            )

        return await self.get_category(db, category_id)

    async def delete_category(self, db: AsyncIOMotorDatabase, category_id: int) -> dict:
        """
        Delete a category that no product references

        Raises:
            CategoryInUseError: products still use the category
        """
        category = await self.get_category(db, category_id)

        product_count = await db[PRODUCTS].count_documents({"category": name_matcher(category["name"])})
        if product_count > 0:
            raise CategoryInUseError(category["name"], product_count)

        await db[CATEGORIES].delete_one({"id": category_id})
        logger.log_db_operation("delete", CATEGORIES, 1, category_id=category_id)
        return category


category_service = CategoryService()
