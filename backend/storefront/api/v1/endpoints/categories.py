from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from storefront.core.database import get_db
from storefront.modules.auth.dependencies import get_current_admin
from storefront.schemas.category import CategoryCreate, CategoryUpdate
from storefront.schemas.common import success_response
from storefront.services.category_service import category_service

router = APIRouter()


@router.get("")
async def list_categories(
    active_only: bool = Query(False, alias="activeOnly"),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """List categories sorted by name"""
    return success_response(await category_service.list_categories(db, active_only))


@router.get("/{category_id}")
async def get_category(
    category_id: int,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return success_response(await category_service.get_category(db, category_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Create category (Admin only)"""
    category = await category_service.create_category(db, category_data)
    return success_response(category, "Category created successfully")


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Update category; a rename is applied to its products (Admin only)"""
    category = await category_service.update_category(db, category_id, category_data)
    return success_response(category, "Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Delete an unused category (Admin only)"""
    category = await category_service.delete_category(db, category_id)
    return success_response({"id": category["id"]}, "Category deleted successfully")
