"""Integration tests for per-endpoint rate limits."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestRateLimits:
    async def test_register_limited_to_three_per_minute(self, async_client: AsyncClient):
        statuses = []
        for i in range(4):
            response = await async_client.post(
                "/api/register",
                json={"username": f"cadet{i}", "email": f"cadet{i}@example.com", "password": "rocket123"},
            )
            statuses.append(response.status_code)

        assert statuses == [201, 201, 201, 429]

    async def test_login_limited_to_five_per_minute(self, async_client: AsyncClient, test_user):
        statuses = []
        for _ in range(6):
            response = await async_client.post(
                "/api/login", json={"username": test_user.username, "password": "wrong-password"}
            )
            statuses.append(response.status_code)

        assert statuses[:5] == [400] * 5
        assert statuses[5] == 429
