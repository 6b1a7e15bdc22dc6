from pydantic_settings import BaseSettings
from typing import List, Dict, Any
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_promo_codes(v: str) -> Dict[str, float]:
    """Parse promo codes from environment variable format: CODE1:percent,CODE2:percent"""
    if not v:
        return {}
    codes = {}
    for item in v.split(','):
        if ':' in item:
            code, percent = item.strip().split(':')
            codes[code.strip().upper()] = float(percent.strip()) / 100
    return codes


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Storefront"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database (MongoDB)
    # ==========================================
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "products-catalog"
    MONGODB_MAX_POOL_SIZE: int = 50
    MONGODB_TIMEOUT_MS: int = 5000

    # ==========================================
    # Security
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12  # 4 for dev (fast), 12 for prod (secure)
    PASSWORD_MIN_LENGTH: int = 6

    # CORS (stored as comma-separated string, parsed to list)
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Login throttling (in-memory, per identifier)
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_MAX_ATTEMPTS_PER_IP: int = 20
    LOGIN_WINDOW_SECONDS: int = 15 * 60

    # ==========================================
    # Uploads / Image storage
    # ==========================================
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB per image
    MAX_REQUEST_SIZE: int = 10 * 1024 * 1024  # 10MB per request body
    MAX_PRODUCT_IMAGES: int = 5
    IMAGE_BUCKET_NAME: str = "images"
    IMAGE_CACHE_MAX_AGE: int = 31536000  # 1 year

    # ==========================================
    # Catalog
    # ==========================================
    FEATURED_MIN_RATING: float = 4.5
    DEFAULT_PRODUCT_IMAGE: str = "/placeholder.svg"

    # ==========================================
    # Cart pricing
    # ==========================================
    SHIPPING_FREE_THRESHOLD: float = 100.0
    SHIPPING_FLAT_RATE: float = 9.99
    SALES_TAX_RATE: float = 0.08
    PROMO_CODES_STR: str = "SAVE10:10,WELCOME20:20"

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def BASE_DIR(self) -> Path:
        return Path(__file__).resolve().parent.parent.parent

    @property
    def API_PREFIX(self) -> str:
        return f"/api/{self.API_VERSION}"

    def get_promo_codes(self) -> Dict[str, float]:
        """Get promo codes as a dictionary of CODE -> discount rate"""
        return parse_promo_codes(self.PROMO_CODES_STR)

    def get_image_url(self, image_id: str) -> str:
        """Public URL under which an uploaded image is served"""
        return f"{self.API_PREFIX}/images/{image_id}"

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG


# Create settings instance
settings = Settings()
