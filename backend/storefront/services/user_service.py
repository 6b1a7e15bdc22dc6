"""
User Service - accounts, login and user maintenance

Handles:
- Registration and credential checks
- Login throttling per email and per client IP
- Admin user management (listing, role changes)
- Maintenance tasks used by scripts/manage_users.py
"""

import re
from datetime import datetime, timezone
from typing import Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from storefront.core.database import NO_ID, USERS, next_sequence
from storefront.core.exceptions import (
    AuthenticationError,
    EmailAlreadyRegisteredError,
    LoginRateLimitedError,
    UserNotFoundError,
    ValidationError,
)
from storefront.core.logging_config import logger
from storefront.core.rate_limiter import email_login_limiter, ip_login_limiter
from storefront.core.security import (
    get_password_hash,
    is_password_hashed,
    sanitize_user,
    verify_password,
)
from storefront.schemas.auth import UserRegister
from storefront.utils.pagination import paginate

ROLE_USER = "user"
ROLE_ADMIN = "admin"

INVALID_CREDENTIALS = "Invalid email or password"

TEST_USER = {
    "email": "test@example.com",
    "password": "123456",
    "firstName": "Test",
    "lastName": "User",
}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def email_matcher(email: str) -> dict:
    """Case-insensitive exact match, for accounts stored before emails were normalised"""
    return {"$regex": f"^{re.escape(normalize_email(email))}$", "$options": "i"}


class UserService:
    """Service for user accounts"""

    async def get_user(self, db: AsyncIOMotorDatabase, user_id: int) -> Optional[dict]:
        user = await db[USERS].find_one({"id": user_id}, NO_ID)
        return sanitize_user(user) if user else None

    async def get_user_by_email(self, db: AsyncIOMotorDatabase, email: str) -> Optional[dict]:
        """Raw user document (password included) for an email, ignoring case"""
        return await db[USERS].find_one({"email": email_matcher(email)}, NO_ID)

    async def _create_user(
        self,
        db: AsyncIOMotorDatabase,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str = ROLE_USER,
    ) -> dict:
        now = datetime.now(timezone.utc)
        user = {
            "id": await next_sequence(db, USERS),
            "firstName": first_name.strip(),
            "lastName": last_name.strip(),
            "email": normalize_email(email),
            "password": get_password_hash(password),
            "role": role,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            await db[USERS].insert_one(user)
        except DuplicateKeyError:
            raise EmailAlreadyRegisteredError(user["email"])

        logger.log_db_operation("insert", USERS, 1, user_id=user["id"])
        return sanitize_user(user)

    async def register(self, db: AsyncIOMotorDatabase, data: UserRegister) -> dict:
        """
        Register a new user with role ``user``

        Raises:
            EmailAlreadyRegisteredError: email is taken
        """
        if await self.get_user_by_email(db, data.email):
            logger.log_auth_event("register", False, data.email, reason="email already registered")
            raise EmailAlreadyRegisteredError(data.email)

        user = await self._create_user(db, data.email, data.password, data.first_name, data.last_name)
        logger.log_auth_event("register", True, user["email"])
        return user

    async def authenticate(self, db: AsyncIOMotorDatabase, email: str, password: str) -> Optional[dict]:
        """Sanitized user when the credentials match, else None"""
        user = await self.get_user_by_email(db, email)
        if not user:
            return None

        stored = user.get("password")
        # A plain-text legacy password never authenticates
        if not is_password_hashed(stored) or not verify_password(password, stored):
            return None

        return sanitize_user(user)

    async def login(self, db: AsyncIOMotorDatabase, email: str, password: str, client_ip: str) -> dict:
        """
        Throttled login.

        The client IP, then the email, must be under their attempt
        limits before credentials are checked. Success clears the email's
        attempt history.

        Raises:
            LoginRateLimitedError: too many attempts for the email or IP
            AuthenticationError: unknown email or wrong password
        """
        email = normalize_email(email)
        email_key = f"email:{email}"
        ip_key = f"ip:{client_ip}"

        if not ip_login_limiter.check(ip_key):
            logger.log_auth_event("login", False, email, reason="too many attempts from ip", client_ip=client_ip)
            raise LoginRateLimitedError(ip_login_limiter.retry_after(ip_key))

        if not email_login_limiter.check(email_key):
            logger.log_auth_event("login", False, email, reason="too many attempts for email")
            raise LoginRateLimitedError(email_login_limiter.retry_after(email_key))

        user = await self.authenticate(db, email, password)
        if not user:
            logger.log_auth_event("login", False, email, reason="invalid credentials")
            raise AuthenticationError(INVALID_CREDENTIALS)

        email_login_limiter.reset(email_key)
        logger.log_auth_event("login", True, email)
        return user

    # ==================== ADMIN ====================

    async def list_users(
        self,
        db: AsyncIOMotorDatabase,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        role: Optional[str] = None,
    ) -> dict:
        query: dict = {}
        if search and search.strip():
            pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [{"email": pattern}, {"firstName": pattern}, {"lastName": pattern}]
        if role:
            query["role"] = role

        return await paginate(
            db[USERS],
            query,
            page=page,
            page_size=page_size,
            sort=[("id", 1)],
            projection={"_id": 0, "password": 0},
        )

    async def set_role(self, db: AsyncIOMotorDatabase, user_id: int, role: str, acting_user_id: int) -> dict:
        """
        Change a user's role (Admin only)

        Raises:
            UserNotFoundError: unknown user
            ValidationError: an admin tried to demote themselves
        """
        user = await self.get_user(db, user_id)
        if not user:
            raise UserNotFoundError(user_id)

        if user_id == acting_user_id and role != ROLE_ADMIN:
            raise ValidationError("You cannot remove your own admin role", field="role")

        await db[USERS].update_one(
            {"id": user_id},
            {"$set": {"role": role, "updatedAt": datetime.now(timezone.utc)}},
        )
        logger.info(f"[Users] Role of user {user_id} set to {role} by {acting_user_id}")
        return await self.get_user(db, user_id)

    # ==================== MAINTENANCE ====================

    async def backfill_roles(self, db: AsyncIOMotorDatabase) -> int:
        """Give role ``user`` to every account without a role"""
        result = await db[USERS].update_many(
            {"$or": [{"role": {"$exists": False}}, {"role": None}, {"role": ""}]},
            {"$set": {"role": ROLE_USER}},
        )
        logger.log_db_operation("backfill_roles", USERS, result.modified_count)
        return result.modified_count

    async def set_admin_by_email(self, db: AsyncIOMotorDatabase, email: str) -> dict:
        user = await self.get_user_by_email(db, email)
        if not user:
            raise UserNotFoundError(normalize_email(email))

        await db[USERS].update_one(
            {"id": user["id"]},
            {"$set": {"role": ROLE_ADMIN, "updatedAt": datetime.now(timezone.utc)}},
        )
        logger.info(f"[Users] {user['email']} promoted to admin")
        return await self.get_user(db, user["id"])

    async def fix_plaintext_passwords(self, db: AsyncIOMotorDatabase) -> int:
        """Hash every stored password that is not a bcrypt hash yet"""
        fixed = 0
        users = await db[USERS].find({}, {"id": 1, "password": 1, "_id": 0}).to_list(None)
        for user in users:
            password = user.get("password")
            if not password or is_password_hashed(password):
                continue
            await db[USERS].update_one(
                {"id": user["id"]},
                {"$set": {"password": get_password_hash(password), "updatedAt": datetime.now(timezone.utc)}},
            )
            fixed += 1

        logger.log_db_operation("fix_passwords", USERS, fixed)
        return fixed

    async def audit_passwords(self, db: AsyncIOMotorDatabase) -> dict:
        """Count hashed vs plain-text stored passwords"""
        users = await db[USERS].find({}, {"email": 1, "password": 1, "_id": 0}).to_list(None)
        plain = [u.get("email") for u in users if not is_password_hashed(u.get("password"))]
        return {
            "total": len(users),
            "hashed": len(users) - len(plain),
            "plain": len(plain),
            "plainEmails": plain,
        }

    async def create_test_user(self, db: AsyncIOMotorDatabase) -> Tuple[dict, bool]:
        """Create test@example.com; returns (user, created)"""
        existing = await self.get_user_by_email(db, TEST_USER["email"])
        if existing:
            return sanitize_user(existing), False

        user = await self._create_user(
            db,
            TEST_USER["email"],
            TEST_USER["password"],
            TEST_USER["firstName"],
            TEST_USER["lastName"],
        )
        return user, True


user_service = UserService()
