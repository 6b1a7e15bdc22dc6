from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from jose import ExpiredSignatureError, JWTError, jwt
import bcrypt
import re
import secrets

from storefront.core.config import settings
from storefront.core.exceptions import InvalidTokenError, TokenExpiredError

# Bcrypt hashes start with $2a$, $2b$, $2x$ or $2y$
BCRYPT_HASH_PATTERN = re.compile(r"^\$2[abxy]?\$\d{2}\$")

PASSWORD_SYMBOLS = "@$!%*?&"

# Fields never sent back to clients
SENSITIVE_USER_FIELDS = ("password", "_id")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against a bcrypt hash"""
    if not plain_password or not hashed_password:
        return False
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash (legacy plain-text password)
        return False


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    if not isinstance(password, str) or not password:
        raise ValueError("Password must be a non-empty string")
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def is_password_hashed(password: Optional[str]) -> bool:
    """Check whether a stored password is already a bcrypt hash"""
    if not password or not isinstance(password, str):
        return False
    return bool(BCRYPT_HASH_PATTERN.match(password))


def validate_password_strength(password: Optional[str]) -> Tuple[bool, str]:
    """Validate password against the configured policy"""
    if not password:
        return False, "Password is required"

    if len(password) < settings.PASSWORD_MIN_LENGTH:
        return False, f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long"

    return True, "Password is valid"


def generate_secure_password(length: int = 12) -> str:
    """
    Generate a random password with at least one lowercase letter,
    uppercase letter, digit and symbol.
    """
    if length < 4:
        raise ValueError("Password length must be at least 4")

    lowercase = "abcdefghijklmnopqrstuvwxyz"
    uppercase = lowercase.upper()
    digits = "0123456789"
    alphabet = lowercase + uppercase + digits + PASSWORD_SYMBOLS

    chars = [
        secrets.choice(lowercase),
        secrets.choice(uppercase),
        secrets.choice(digits),
        secrets.choice(PASSWORD_SYMBOLS),
    ]
    chars.extend(secrets.choice(alphabet) for _ in range(length - 4))

    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def _token_claims(data: Dict[str, Any], expire: datetime, token_type: str) -> Dict[str, Any]:
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    to_encode.update({
        "iat": datetime.now(timezone.utc),
        "exp": expire,
        "type": token_type,
    })
    return to_encode


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = _token_claims(data, expire, "access")
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(data: Dict[str, Any]) -> str:
    """Create JWT refresh token"""
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode = _token_claims(data, expire, "refresh")
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_token_pair(user: Dict[str, Any]) -> Dict[str, str]:
    """Access + refresh token for a (sanitized) user document"""
    if not user or user.get("id") is None or not user.get("email"):
        raise ValueError("Invalid user data for token generation")

    claims = {
        "sub": str(user["id"]),
        "email": user["email"],
        "first_name": user.get("firstName"),
        "last_name": user.get("lastName"),
        "role": user.get("role", "user"),
    }
    return {
        "token": create_access_token(claims),
        "refresh_token": create_refresh_token({"sub": claims["sub"]}),
    }


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT token"""
    if not token or not isinstance(token, str):
        raise InvalidTokenError()
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()


def get_token_from_header(auth_header: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header"""
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header[len("Bearer "):].strip()
    return token or None


def sanitize_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of a user document without sensitive fields"""
    return {k: v for k, v in user.items() if k not in SENSITIVE_USER_FIELDS}
