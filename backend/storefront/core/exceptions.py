"""
Custom Exceptions for Storefront
================================

Services raise these instead of HTTPException; the handler registered in
``storefront.main`` renders them with their ``status_code``.

Usage:
    from storefront.core.exceptions import ProductNotFoundError

    if not product:
        raise ProductNotFoundError(product_id)
"""

from typing import Optional, Any, Dict, List


class StorefrontError(Exception):
    """Base exception for all Storefront errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(StorefrontError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(StorefrontError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class TokenExpiredError(AuthenticationError):
    """JWT token has expired"""

    def __init__(self):
        super().__init__("Token has expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid"""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(StorefrontError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class ProductNotFoundError(ResourceNotFoundError):
    """Product not found"""

    def __init__(self, product_id: int):
        super().__init__("Product", product_id)


class CategoryNotFoundError(ResourceNotFoundError):
    """Category not found"""

    def __init__(self, category_id: int):
        super().__init__("Category", category_id)


class UserNotFoundError(ResourceNotFoundError):
    """User not found"""

    def __init__(self, user_id: Any):
        super().__init__("User", user_id)


class ImageNotFoundError(ResourceNotFoundError):
    """Image not found in the blob store"""

    def __init__(self, image_id: str):
        super().__init__("Image", image_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(StorefrontError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidFileTypeError(ValidationError):
    """File type not allowed"""

    def __init__(self, file_type: str, allowed: str = "image/*"):
        super().__init__(f"File type '{file_type}' not allowed. Only {allowed} files are accepted")
        self.code = "INVALID_FILE_TYPE"
        self.details = {"file_type": file_type, "allowed": allowed}


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the size limit"""

    def __init__(self, size: int, max_size: int):
        super().__init__(f"File too large. Maximum size is {max_size // 1024 // 1024}MB")
        self.code = "FILE_TOO_LARGE"
        self.details = {"size": size, "max_size": max_size}


class InvalidPromoCodeError(ValidationError):
    """Promo code is unknown"""

    def __init__(self, promo_code: str):
        super().__init__("Invalid promo code", field="promoCode")
        self.code = "INVALID_PROMO_CODE"
        self.details["promo_code"] = promo_code


class UnknownCategoryError(ValidationError):
    """Product references a category that does not exist"""

    def __init__(self, category: str, available: Optional[List[str]] = None):
        super().__init__(f"Unknown category '{category}'", field="category")
        self.code = "UNKNOWN_CATEGORY"
        if available is not None:
            self.details["available"] = available


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(StorefrontError):
    """Request conflicts with the current state of a resource"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class EmailAlreadyRegisteredError(ConflictError):
    """A user with this email already exists"""

    def __init__(self, email: str):
        super().__init__("User with this email already exists", code="EMAIL_ALREADY_REGISTERED")


class CategoryAlreadyExistsError(ConflictError):
    """Category name is taken (case-insensitive)"""

    def __init__(self, name: str):
        super().__init__(
            "Category already exists",
            code="CATEGORY_ALREADY_EXISTS",
            details={"name": name}
        )


class CategoryInUseError(ConflictError):
    """Category cannot be deleted while products reference it"""

    def __init__(self, name: str, product_count: int):
        super().__init__(
            f"Cannot delete category. {product_count} products are using this category.",
            code="CATEGORY_IN_USE",
            details={"name": name, "product_count": product_count}
        )


# ============================================
# Rate limiting (429)
# ============================================

class LoginRateLimitedError(StorefrontError):
    """Too many login attempts for an identifier"""

    status_code = 429

    def __init__(self, retry_after: int):
        super().__init__(
            "Too many login attempts. Please try again later.",
            code="TOO_MANY_LOGIN_ATTEMPTS",
            details={"retry_after_seconds": retry_after}
        )
        self.retry_after = retry_after


# ============================================
# Storage Errors
# ============================================

class StorageError(StorefrontError):
    """Blob storage operation failed"""

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")


class ImageUploadError(StorageError):
    """Writing an image to the blob store failed"""

    def __init__(self, filename: str, message: str = "Upload failed"):
        super().__init__(f"Failed to store image: {message}")
        self.code = "IMAGE_UPLOAD_FAILED"
        self.details["filename"] = filename


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: StorefrontError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
