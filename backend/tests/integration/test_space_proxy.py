"""Integration tests for the cached space data proxy endpoints."""

import httpx
import pytest
from httpx import AsyncClient

from adapters.space import SpaceDataClient, get_space_data_client

pytestmark = pytest.mark.asyncio


@pytest.fixture
def upstream(app):
    """Route upstream calls to a MockTransport; returns the list of requested URLs."""
    calls: list[httpx.URL] = []
    state = {"status": 200}

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if state["status"] != 200:
            return httpx.Response(state["status"])
        return httpx.Response(200, json={"path": request.url.path, "params": dict(request.url.params)})

    client = SpaceDataClient(
        nasa_api_key="nasa-test", spacedevs_api_key="", transport=httpx.MockTransport(handler)
    )
    app.dependency_overrides[get_space_data_client] = lambda: client
    return calls, state


class TestSpaceProxy:
    async def test_relays_payload(self, async_client: AsyncClient, upstream):
        response = await async_client.get("/api/spacex/upcoming")
        assert response.status_code == 200
        assert response.json()["path"] == "/v5/launches/upcoming"

    async def test_responses_are_cached(self, async_client: AsyncClient, upstream):
        calls, _ = upstream
        await async_client.get("/api/spacex/rockets")
        await async_client.get("/api/spacex/rockets")
        await async_client.get("/api/space/people")

        assert [url.path for url in calls] == ["/v4/rockets", "/astros.json"]

    async def test_apod_cache_is_per_date(self, async_client: AsyncClient, upstream):
        calls, _ = upstream
        first = await async_client.get("/api/nasa/apod", params={"date": "2024-01-01"})
        await async_client.get("/api/nasa/apod", params={"date": "2024-01-02"})
        await async_client.get("/api/nasa/apod", params={"date": "2024-01-01"})

        assert first.json()["params"] == {"api_key": "nasa-test", "date": "2024-01-01"}
        assert len(calls) == 2

    async def test_invalid_apod_date(self, async_client: AsyncClient, upstream):
        response = await async_client.get("/api/nasa/apod", params={"date": "yesterday"})
        assert response.status_code == 400

    async def test_impossible_dates_rejected_before_upstream(self, async_client: AsyncClient, upstream):
        calls, _ = upstream
        apod = await async_client.get("/api/nasa/apod", params={"date": "2024-13-45"})
        neo = await async_client.get("/api/nasa/neo", params={"start_date": "2024-02-30"})

        assert apod.status_code == 400
        assert neo.status_code == 400
        assert calls == []

    async def test_upstream_failure(self, async_client: AsyncClient, upstream):
        calls, state = upstream
        state["status"] = 502

        response = await async_client.get("/api/spacex/upcoming")
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to fetch SpaceX upcoming launches"

        # Failures are not cached
        state["status"] = 200
        response = await async_client.get("/api/spacex/upcoming")
        assert response.status_code == 200
        assert len(calls) == 2

    async def test_launch_library(self, async_client: AsyncClient, upstream):
        calls, _ = upstream
        await async_client.get("/api/launches/previous")
        assert calls[0].host == "lldev.thespacedevs.com"
        assert calls[0].path == "/2.2.0/launch/previous/"

    async def test_iss_location(self, async_client: AsyncClient, upstream):
        response = await async_client.get("/api/iss/location")
        assert response.json()["path"] == "/iss-now.json"
