from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from storefront.core.database import get_db
from storefront.modules.auth.dependencies import get_current_admin
from storefront.schemas.common import success_response
from storefront.schemas.user import RoleUpdate, UserRole
from storefront.services.user_service import user_service

router = APIRouter()


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    search: Optional[str] = Query(None, max_length=200),
    role: Optional[UserRole] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """List users with pagination and filters (passwords never included)"""
    result = await user_service.list_users(db, page=page, page_size=page_size, search=search, role=role)
    return success_response(result)


@router.put("/{user_id}/role")
async def update_user_role(
    user_id: int,
    body: RoleUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Change a user's role; admins cannot demote themselves"""
    user = await user_service.set_role(db, user_id, body.role, acting_user_id=admin["id"])
    return success_response(user, f"Role updated to {body.role}")
