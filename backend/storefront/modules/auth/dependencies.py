from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from storefront.core.database import NO_ID, USERS, get_db
from storefront.core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from storefront.core.logging_config import set_user_id
from storefront.core.security import decode_token, sanitize_user

# auto_error=False so a missing header produces our own 401 envelope
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> dict:
    """Get current authenticated user (re-read from the database)"""

    if not credentials or not credentials.credentials:
        raise AuthenticationError("Access token is required")

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise InvalidTokenError("Invalid token type")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise InvalidTokenError("Invalid token payload")

    user = await db[USERS].find_one({"id": user_id}, NO_ID)
    if not user:
        raise AuthenticationError("User not found")

    # Used by the rate limiter key function and log context
    request.state.user_id = user_id
    set_user_id(str(user_id))

    return sanitize_user(user)


async def get_current_admin(
    current_user: dict = Depends(get_current_user)
) -> dict:
    """Get current admin user (role as stored now, not as issued in the token)"""
    if current_user.get("role") != "admin":
        raise AuthorizationError("Admin access required")
    return current_user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> Optional[dict]:
    """Get current user (optional); an invalid token counts as anonymous"""
    if not credentials:
        return None

    try:
        return await get_current_user(request, credentials, db)
    except AuthenticationError:
        return None
