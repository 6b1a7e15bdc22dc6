"""
Unit Tests for Products API endpoints
"""
import pytest
from httpx import AsyncClient

from conftest import insert_product


class TestCatalog:

    async def test_list_products(self, client: AsyncClient, db):
        await insert_product(db, name="Lamp", category="Home", price=30)
        await insert_product(db, name="Phone", category="Electronics", price=500)

        response = await client.get("/api/v1/products")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [p["name"] for p in body["data"]] == ["Lamp", "Phone"]
        assert all("_id" not in p for p in body["data"])

    async def test_list_with_filters(self, client: AsyncClient, db):
        await insert_product(db, name="Lamp", category="Home", price=30, rating=4.8)
        await insert_product(db, name="Rug", category="Home", price=120, rating=3.0)
        await insert_product(db, name="Phone", category="Electronics", price=500, inStock=False)

        response = await client.get(
            "/api/v1/products",
            params={"category": "Home", "maxPrice": 100, "minRating": 4},
        )
        assert [p["name"] for p in response.json()["data"]] == ["Lamp"]

        response = await client.get("/api/v1/products", params={"inStock": "false"})
        assert [p["name"] for p in response.json()["data"]] == ["Phone"]

        response = await client.get("/api/v1/products", params={"category": "All", "limit": 2})
        assert len(response.json()["data"]) == 2

    async def test_list_rejects_bad_query(self, client: AsyncClient):
        response = await client.get("/api/v1/products", params={"minPrice": -1})
        assert response.status_code == 422

    async def test_featured(self, client: AsyncClient, db):
        await insert_product(db, name="ok", rating=4.0)
        await insert_product(db, name="top", rating=5.0)

        response = await client.get("/api/v1/products/featured")

        assert [p["name"] for p in response.json()["data"]] == ["top"]

    async def test_get_product(self, client: AsyncClient, db):
        product = await insert_product(db, name="Lamp")

        response = await client.get(f"/api/v1/products/{product['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Lamp"

    async def test_get_missing_product(self, client: AsyncClient):
        response = await client.get("/api/v1/products/999")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"

    async def test_get_product_with_non_numeric_id(self, client: AsyncClient):
        response = await client.get("/api/v1/products/abc")
        assert response.status_code == 422

    async def test_related(self, client: AsyncClient, db):
        base = await insert_product(db, category="Home")
        sibling = await insert_product(db, category="Home")
        await insert_product(db, category="Fashion")

        response = await client.get(f"/api/v1/products/{base['id']}/related")

        assert [p["id"] for p in response.json()["data"]] == [sibling["id"]]


class TestAdminWrites:

    async def test_create_product(self, client: AsyncClient, admin_auth_headers, categories):
        response = await client.post(
            "/api/v1/products",
            json={
                "name": "Kettle",
                "price": 24.99,
                "category": "home",
                "images": [
                    {"url": "/api/v1/images/b", "order": 1},
                    {"url": "/api/v1/images/a", "order": 0, "isPrimary": True},
                ],
            },
            headers=admin_auth_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["id"] == 1
        assert data["category"] == "Home"
        assert data["image"] == "/api/v1/images/a"
        assert [img["order"] for img in data["images"]] == [0, 1]

    async def test_create_unknown_category(self, client: AsyncClient, admin_auth_headers, categories):
        response = await client.post(
            "/api/v1/products",
            json={"name": "Robot", "price": 10, "category": "Toys"},
            headers=admin_auth_headers,
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "UNKNOWN_CATEGORY"
        assert "Electronics" in error["details"]["available"]

    async def test_create_requires_admin(self, client: AsyncClient, auth_headers, categories):
        response = await client.post(
            "/api/v1/products",
            json={"name": "Kettle", "price": 10, "category": "Home"},
            headers=auth_headers,
        )

        assert response.status_code == 403

    async def test_create_requires_token(self, client: AsyncClient):
        response = await client.post("/api/v1/products", json={"name": "Kettle", "price": 10, "category": "Home"})
        assert response.status_code == 401

    async def test_update_product(self, client: AsyncClient, db, admin_auth_headers, categories):
        product = await insert_product(db, name="Lamp", category="Home", price=30)

        response = await client.put(
            f"/api/v1/products/{product['id']}",
            json={"price": 25, "inStock": False},
            headers=admin_auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["price"] == 25
        assert data["inStock"] is False
        assert data["name"] == "Lamp"

    async def test_update_missing_product(self, client: AsyncClient, admin_auth_headers):
        response = await client.put("/api/v1/products/999", json={"price": 1}, headers=admin_auth_headers)
        assert response.status_code == 404

    async def test_delete_removes_images_and_cart_lines(
        self, client: AsyncClient, db, image_store, gridfs_bucket, test_user, admin_auth_headers
    ):
        kept = await image_store.upload(b"abc", "a.png", "image/png")
        product = await insert_product(
            db,
            images=[{"id": kept.id, "url": f"/api/v1/images/{kept.id}", "isPrimary": True, "order": 0}],
            imageId=kept.id,
        )
        await db["cart"].insert_one({"userId": test_user["id"], "productId": product["id"], "quantity": 2})

        response = await client.delete(f"/api/v1/products/{product['id']}", headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"id": product["id"], "deletedImages": 1, "removedCartLines": 1}
        assert gridfs_bucket.files == {}
        assert await db["products"].count_documents({}) == 0
        assert await db["cart"].count_documents({}) == 0

    async def test_delete_skips_missing_images(self, client: AsyncClient, db, admin_auth_headers):
        product = await insert_product(db, imageId="5f0000000000000000000000")

        response = await client.delete(f"/api/v1/products/{product['id']}", headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["deletedImages"] == 0
