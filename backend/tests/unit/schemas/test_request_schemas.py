"""
Unit Tests for request schemas
"""
import pytest
from pydantic import ValidationError

from storefront.schemas.auth import UserLogin, UserRegister
from storefront.schemas.cart import CartItemAdd, CartItemUpdate
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.schemas.user import RoleUpdate


class TestUserRegister:

    def test_camel_case_fields_and_email_normalisation(self):
        data = UserRegister.model_validate({
            "firstName": " Jane ",
            "lastName": "Doe",
            "email": "  Jane.Doe@Example.COM ",
            "password": "secret1",
        })

        assert data.first_name == "Jane"
        assert data.email == "jane.doe@example.com"

    def test_short_password(self):
        with pytest.raises(ValidationError):
            UserRegister(firstName="a", lastName="b", email="a@b.com", password="12345")

    @pytest.mark.parametrize("field", ["firstName", "lastName", "email", "password"])
    def test_required_fields(self, field):
        body = {"firstName": "a", "lastName": "b", "email": "a@b.com", "password": "123456"}
        body.pop(field)

        with pytest.raises(ValidationError):
            UserRegister.model_validate(body)

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            UserLogin(email="not-an-email", password="x")


class TestCartSchemas:

    def test_add_defaults_to_one(self):
        assert CartItemAdd.model_validate({"productId": 3}).quantity == 1

    def test_add_rejects_zero(self):
        with pytest.raises(ValidationError):
            CartItemAdd.model_validate({"productId": 3, "quantity": 0})

    def test_update_allows_zero(self):
        assert CartItemUpdate.model_validate({"productId": 3, "quantity": 0}).quantity == 0


class TestProductSchemas:

    def test_defaults(self):
        product = ProductCreate(name="Lamp", price=10, category="Home")

        assert product.rating == 0
        assert product.in_stock is True
        assert product.images == []

    def test_gallery_size_limit(self):
        images = [{"url": f"/{i}.png"} for i in range(6)]

        with pytest.raises(ValidationError):
            ProductCreate.model_validate({"name": "x", "price": 1, "category": "Home", "images": images})
        with pytest.raises(ValidationError):
            ProductUpdate.model_validate({"images": images})

    @pytest.mark.parametrize("body", [{"price": -1}, {"rating": 5.5}, {"name": ""}])
    def test_update_bounds(self, body):
        with pytest.raises(ValidationError):
            ProductUpdate.model_validate(body)

    def test_update_tracks_set_fields(self):
        update = ProductUpdate.model_validate({"price": 3, "imageId": None})

        assert update.model_dump(by_alias=True, exclude_unset=True) == {"price": 3, "imageId": None}


def test_role_update_accepts_known_roles():
    assert RoleUpdate(role="admin").role == "admin"

    with pytest.raises(ValidationError):
        RoleUpdate(role="superuser")
