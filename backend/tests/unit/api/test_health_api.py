"""
Unit Tests for health and root endpoints
"""
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from storefront.core.database import get_db
from storefront.core.middleware import RequestSizeLimitMiddleware, is_quiet_path
from storefront.main import app


class TestHealth:

    async def test_liveness(self, client: AsyncClient):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_app_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.json()["environment"] == "testing"

    async def test_root(self, client: AsyncClient):
        response = await client.get("/")
        assert response.json()["docs"] == "/docs"

    async def test_ready(self, client: AsyncClient):
        response = await client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json()["database"]["status"] == "healthy"

    async def test_not_ready_when_database_is_down(self, client: AsyncClient):
        class DownDatabase:
            async def command(self, *args, **kwargs):
                raise ConnectionError("down")

        async def down_db():
            yield DownDatabase()

        app.dependency_overrides[get_db] = down_db

        response = await client.get("/api/v1/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestMiddleware:

    async def test_security_and_tracing_headers(self, client: AsyncClient):
        response = await client.get("/api/v1/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Request-ID"]
        assert response.headers["X-Response-Time"].endswith("ms")

    async def test_request_id_is_echoed(self, client: AsyncClient):
        response = await client.get("/api/v1/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    async def test_oversized_request_rejected(self):
        small = FastAPI()
        small.add_middleware(RequestSizeLimitMiddleware, max_size=8)

        @small.post("/echo")
        async def echo():
            return {"ok": True}

        async with AsyncClient(transport=ASGITransport(app=small), base_url="http://test") as ac:
            assert (await ac.post("/echo", content=b"12345678")).status_code == 200
            response = await ac.post("/echo", content=b"123456789")

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "REQUEST_TOO_LARGE"

    def test_quiet_paths(self):
        assert is_quiet_path("/health")
        assert is_quiet_path("/api/v1/images/abc")
        assert not is_quiet_path("/api/v1/products")


class TestUnhandledErrors:

    async def test_internal_error_message_hidden(self, db):
        async def broken_db():
            raise RuntimeError("mongodb://admin:hunter2@db")
            yield db

        app.dependency_overrides[get_db] = broken_db
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                response = await ac.get("/api/v1/health/ready")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert body["error"]["message"] == "An error occurred"
        assert "hunter2" not in response.text
