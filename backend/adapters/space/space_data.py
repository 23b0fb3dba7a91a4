"""
Public space-data API client.

Fetches JSON from SpaceX, The Space Devs (Launch Library 2), Open Notify and
NASA. Responses are returned unmodified; callers cache them. There is no
retry: a failed call raises :class:`UpstreamError`.
"""

import logging
from typing import Any, Optional

import httpx

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

SPACEX_API = "https://api.spacexdata.com"
SPACEDEVS_API = "https://ll.thespacedevs.com/2.2.0"
SPACEDEVS_DEV_API = "https://lldev.thespacedevs.com/2.2.0"
OPEN_NOTIFY_API = "http://api.open-notify.org"
NASA_API = "https://api.nasa.gov"


class UpstreamError(Exception):
    """Raised when an upstream API call fails or returns a non-2xx status."""

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status_code = status_code


class SpaceDataClient:
    """Async client over the public space APIs."""

    def __init__(
        self,
        nasa_api_key: Optional[str] = None,
        spacedevs_api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            nasa_api_key: api.nasa.gov key (defaults to settings, ``DEMO_KEY``)
            spacedevs_api_key: Launch Library 2 token; without it the rate-limited dev host is used
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        """
        self.nasa_api_key = nasa_api_key or settings.nasa_api_key
        self.spacedevs_api_key = (
            spacedevs_api_key if spacedevs_api_key is not None else settings.spacedevs_api_key
        )
        self.timeout = timeout or settings.upstream_timeout_seconds
        self._transport = transport

    async def _get_json(
        self,
        source: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("%s returned %s for %s", source, e.response.status_code, url)
            raise UpstreamError(
                source, f"HTTP {e.response.status_code}", e.response.status_code
            ) from e
        except httpx.RequestError as e:
            logger.warning("%s request failed: %s", source, e)
            raise UpstreamError(source, f"Request failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(source, "Response is not valid JSON") from e

    # SpaceX

    async def spacex_upcoming(self) -> Any:
        return await self._get_json("SpaceX", f"{SPACEX_API}/v5/launches/upcoming")

    async def spacex_launches(self) -> Any:
        return await self._get_json("SpaceX", f"{SPACEX_API}/v5/launches")

    async def spacex_rockets(self) -> Any:
        return await self._get_json("SpaceX", f"{SPACEX_API}/v4/rockets")

    async def spacex_company(self) -> Any:
        return await self._get_json("SpaceX", f"{SPACEX_API}/v4/company")

    # The Space Devs

    def _spacedevs(self) -> tuple[str, Optional[dict[str, str]]]:
        if self.spacedevs_api_key:
            return SPACEDEVS_API, {"Authorization": f"Token {self.spacedevs_api_key}"}
        return SPACEDEVS_DEV_API, None

    async def launches_upcoming(self, limit: int = 50) -> Any:
        base, headers = self._spacedevs()
        return await self._get_json(
            "The Space Devs", f"{base}/launch/upcoming/", {"limit": limit}, headers
        )

    async def launches_previous(self, limit: int = 50) -> Any:
        base, headers = self._spacedevs()
        return await self._get_json(
            "The Space Devs", f"{base}/launch/previous/", {"limit": limit}, headers
        )

    # Open Notify

    async def iss_location(self) -> Any:
        return await self._get_json("Open Notify", f"{OPEN_NOTIFY_API}/iss-now.json")

    async def people_in_space(self) -> Any:
        return await self._get_json("Open Notify", f"{OPEN_NOTIFY_API}/astros.json")

    # NASA

    async def nasa_apod(self, date: Optional[str] = None) -> Any:
        params: dict[str, Any] = {"api_key": self.nasa_api_key}
        if date:
            params["date"] = date
        return await self._get_json("NASA", f"{NASA_API}/planetary/apod", params)

    async def nasa_neo(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Any:
        params: dict[str, Any] = {"api_key": self.nasa_api_key}
        if start_date:
            params["start_date"] = start_date
        if end_date:
            params["end_date"] = end_date
        return await self._get_json("NASA", f"{NASA_API}/neo/rest/v1/feed", params)


def get_space_data_client() -> SpaceDataClient:
    """FastAPI dependency."""
    return SpaceDataClient()
