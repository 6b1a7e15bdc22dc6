from fastapi import APIRouter, Depends, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from storefront.core.database import get_db
from storefront.core.exceptions import AuthenticationError, InvalidTokenError
from storefront.core.logging_config import logger
from storefront.core.rate_limiter import LOGIN_LIMIT, REGISTER_LIMIT, get_client_ip, limiter
from storefront.core.security import create_token_pair, decode_token
from storefront.modules.auth.dependencies import get_current_user
from storefront.schemas.auth import RefreshTokenRequest, UserLogin, UserRegister
from storefront.schemas.common import success_response
from storefront.services.user_service import user_service

router = APIRouter()


def _auth_payload(user: dict) -> dict:
    tokens = create_token_pair(user)
    return {
        "user": user,
        "token": tokens["token"],
        "refreshToken": tokens["refresh_token"],
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Register new user (rate limited: 3/min)"""
    user = await user_service.register(db, user_data)
    return success_response(_auth_payload(user), "User registered successfully")


@router.post("/login")
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Login with email and password (throttled per email and per IP)"""
    user = await user_service.login(db, credentials.email, credentials.password, get_client_ip(request))
    return success_response(_auth_payload(user), "Login successful")


@router.post("/refresh")
async def refresh_token(
    body: RefreshTokenRequest,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    payload = decode_token(body.refresh_token)

    if payload.get("type") != "refresh":
        raise InvalidTokenError("Invalid token type")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise InvalidTokenError("Invalid token payload")

    user = await user_service.get_user(db, user_id)
    if not user:
        raise AuthenticationError("User not found")

    logger.log_auth_event("refresh", True, user["email"])
    return success_response(_auth_payload(user), "Token refreshed")


@router.get("/me")
async def get_me(current_user: dict = Depends(get_current_user)):
    """Get current user info"""
    return success_response(current_user)
