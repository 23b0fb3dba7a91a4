"""Integration tests for health endpoints and global middleware."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestHealth:
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["cached_responses"] == 0
        assert {"app", "version", "environment", "timestamp"} <= set(data)

    async def test_database_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/health/db")
        assert response.json()["database"] == "connected"
        assert response.json()["status"] == "ok"


class TestMiddleware:
    async def test_security_headers(self, async_client: AsyncClient):
        response = await async_client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Response-Time"].endswith("ms")

    async def test_request_id_echoed_when_valid(self, async_client: AsyncClient):
        request_id = "6f1c1f7e-0a47-4c1e-9a39-3d8f6e2f1a10"
        response = await async_client.get("/api/health", headers={"X-Request-ID": request_id})
        assert response.headers["X-Request-ID"] == request_id

    async def test_request_id_replaced_when_invalid(self, async_client: AsyncClient):
        response = await async_client.get("/api/health", headers={"X-Request-ID": "not-a-uuid"})
        assert response.headers["X-Request-ID"] != "not-a-uuid"

