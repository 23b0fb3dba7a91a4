"""
Ghost Content API adapter.

Reads published posts from a Ghost site with a Content API key. Read-only:
nothing is published to Ghost from here.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


# Custom Exceptions
class GhostConfigError(Exception):
    """Raised when GHOST_URL or GHOST_CONTENT_API_KEY is missing."""
    pass


class GhostAPIError(Exception):
    """Raised when the Ghost API returns an error."""
    pass


LIST_FIELDS = (
    "id,title,slug,excerpt,custom_excerpt,feature_image,published_at,reading_time,primary_tag"
)
POST_FIELDS = (
    "id,title,slug,html,excerpt,custom_excerpt,feature_image,published_at,reading_time,primary_tag"
)


@dataclass
class GhostPostPage:
    """One page of posts plus pagination metadata."""

    posts: list[dict[str, Any]]
    page: int
    limit: int
    pages: int
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "posts": self.posts,
            "meta": {
                "pagination": {
                    "page": self.page,
                    "limit": self.limit,
                    "pages": self.pages,
                    "total": self.total,
                }
            },
        }


class GhostAdapter:
    """Ghost Content API v3 client."""

    def __init__(
        self,
        url: Optional[str] = None,
        content_api_key: Optional[str] = None,
        timeout: int = 15,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = (url or settings.ghost_url or "").rstrip("/")
        self.content_api_key = content_api_key or settings.ghost_content_api_key
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.url and self.content_api_key)

    def _api_url(self, path: str) -> str:
        return f"{self.url}/ghost/api/v3/content/{path}"

    async def _get(self, path: str, params: dict[str, Any]) -> Optional[dict[str, Any]]:
        if not self.configured:
            raise GhostConfigError("Ghost is not configured (GHOST_URL / GHOST_CONTENT_API_KEY)")

        params = {"key": self.content_api_key, **params}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self._api_url(path), params=params)
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Ghost API error %s for %s", e.response.status_code, path)
            raise GhostAPIError(f"Ghost API returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Ghost request failed: %s", e)
            raise GhostAPIError(f"Request failed: {e}") from e

    async def get_posts(
        self,
        page: int = 1,
        limit: int = 10,
        filter: Optional[str] = None,
    ) -> GhostPostPage:
        """List published posts, newest first."""
        params: dict[str, Any] = {
            "page": page,
            "limit": limit,
            "include": "tags,authors",
            "fields": LIST_FIELDS,
        }
        if filter:
            params["filter"] = filter

        data = await self._get("posts/", params) or {}
        pagination = (data.get("meta") or {}).get("pagination") or {}
        return GhostPostPage(
            posts=data.get("posts", []),
            page=pagination.get("page", page),
            limit=pagination.get("limit", limit),
            pages=pagination.get("pages", 1),
            total=pagination.get("total", len(data.get("posts", []))),
        )

    async def get_post_by_slug(self, slug: str) -> Optional[dict[str, Any]]:
        """Fetch a single post, or None when Ghost has no such slug."""
        data = await self._get(
            f"posts/slug/{slug}/",
            {"include": "tags,authors", "fields": POST_FIELDS},
        )
        if not data or not data.get("posts"):
            return None
        return data["posts"][0]


def get_ghost_adapter() -> GhostAdapter:
    """FastAPI dependency."""
    return GhostAdapter()
