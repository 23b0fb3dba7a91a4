"""Integration tests for article search, suggestions and search history."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def library(make_article, author_user):
    now = datetime.now(timezone.utc)
    starship = await make_article(
        author_user, status="published", title="Starship reaches orbit",
        category="launches", tags=["spacex"], published_at=now - timedelta(days=1),
    )
    webb = await make_article(
        author_user, status="published", title="Webb spots ancient galaxy",
        summary="Infrared light from the early universe", category="astronomy",
        published_at=now - timedelta(days=2),
    )
    draft = await make_article(author_user, title="Starship draft notes")
    return starship, webb, draft


class TestSearch:
    async def test_matches_title_case_insensitively(self, async_client: AsyncClient, library):
        response = await async_client.get("/api/search", params={"q": "STARSHIP"})

        data = response.json()
        assert data["total"] == 1
        assert data["total_pages"] == 1
        assert [a["title"] for a in data["data"]] == ["Starship reaches orbit"]

    async def test_matches_summary_category_and_tags(self, async_client: AsyncClient, library):
        by_summary = await async_client.get("/api/search", params={"q": "infrared"})
        by_category = await async_client.get("/api/search", params={"q": "astronomy"})
        by_tag = await async_client.get("/api/search", params={"q": "spacex"})

        assert [a["title"] for a in by_summary.json()["data"]] == ["Webb spots ancient galaxy"]
        assert [a["title"] for a in by_category.json()["data"]] == ["Webb spots ancient galaxy"]
        assert [a["title"] for a in by_tag.json()["data"]] == ["Starship reaches orbit"]

    async def test_empty_query(self, async_client: AsyncClient, library):
        response = await async_client.get("/api/search", params={"q": "  "})
        assert response.json() == {"data": [], "total": 0, "page": 1, "total_pages": 0}

    async def test_like_wildcards_are_literal(self, async_client: AsyncClient, library):
        response = await async_client.get("/api/search", params={"q": "%"})
        assert response.json()["total"] == 0

    async def test_category_filter(self, async_client: AsyncClient, library):
        response = await async_client.get(
            "/api/search", params={"q": "a", "category": "launches"}
        )
        assert [a["title"] for a in response.json()["data"]] == ["Starship reaches orbit"]


class TestSuggestions:
    async def test_title_suggestions(self, async_client: AsyncClient, library):
        response = await async_client.get("/api/search/suggestions", params={"q": "webb"})
        suggestions = response.json()["data"]
        assert [s["slug"] for s in suggestions] == [library[1].slug]
        assert set(suggestions[0]) == {"id", "title", "slug", "category", "published_at"}

    async def test_short_query(self, async_client: AsyncClient, library):
        response = await async_client.get("/api/search/suggestions", params={"q": "w"})
        assert response.json() == {"data": []}


class TestHistory:
    async def test_popular_searches(self, async_client: AsyncClient, user_client: AsyncClient):
        for query in ("Artemis", "artemis", "ARTEMIS", "Mars", "mars", "Europa"):
            response = await async_client.post(
                "/api/search/history", json={"query": query, "result_count": 3}
            )
            assert response.status_code == 201

        recorded = await user_client.post("/api/search/history", json={"query": " Titan "})
        assert recorded.json()["query"] == "Titan"

        popular = (await async_client.get("/api/search/popular", params={"limit": 2})).json()
        assert popular == [{"query": "artemis", "count": 3}, {"query": "mars", "count": 2}]
