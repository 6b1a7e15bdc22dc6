from pydantic import EmailStr, Field, field_validator

from storefront.core.config import settings
from storefront.schemas.common import CamelModel


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class UserRegister(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator('password')
    @classmethod
    def check_password_length(cls, v: str) -> str:
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")
        return v


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)
