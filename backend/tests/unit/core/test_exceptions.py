"""
Unit Tests for the exception hierarchy
"""
from storefront.core.exceptions import (
    AuthenticationError,
    CategoryInUseError,
    EmailAlreadyRegisteredError,
    FileTooLargeError,
    InvalidPromoCodeError,
    InvalidTokenError,
    LoginRateLimitedError,
    ProductNotFoundError,
    StorefrontError,
    TokenExpiredError,
    UnknownCategoryError,
    error_response,
)


class TestExceptionHierarchy:

    def test_status_codes(self):
        assert AuthenticationError().status_code == 401
        assert TokenExpiredError().status_code == 401
        assert ProductNotFoundError(1).status_code == 404
        assert InvalidPromoCodeError("X").status_code == 400
        assert EmailAlreadyRegisteredError("a@b.com").status_code == 409
        assert LoginRateLimitedError(30).status_code == 429
        assert StorefrontError("boom").status_code == 500

    def test_token_errors_are_authentication_errors(self):
        assert isinstance(TokenExpiredError(), AuthenticationError)
        assert isinstance(InvalidTokenError(), AuthenticationError)

    def test_not_found_message_and_code(self):
        error = ProductNotFoundError(99)

        assert error.message == "Product not found"
        assert error.code == "PRODUCT_NOT_FOUND"
        assert error.details["resource_id"] == "99"

    def test_category_in_use_message(self):
        error = CategoryInUseError("Home", 3)
        assert error.message == "Cannot delete category. 3 products are using this category."

    def test_unknown_category_lists_available(self):
        error = UnknownCategoryError("Toys", ["Electronics", "Home"])
        assert error.details["available"] == ["Electronics", "Home"]
        assert error.details["field"] == "category"

    def test_file_too_large_message(self):
        error = FileTooLargeError(6 * 1024 * 1024, 5 * 1024 * 1024)
        assert "5MB" in error.message

    def test_login_rate_limited_carries_retry_after(self):
        error = LoginRateLimitedError(42)
        assert error.retry_after == 42
        assert error.details["retry_after_seconds"] == 42

    def test_error_response_envelope(self):
        body = error_response(InvalidPromoCodeError("NOPE"))

        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_PROMO_CODE"
        assert body["error"]["message"] == "Invalid promo code"
        assert body["error"]["details"]["promo_code"] == "NOPE"
