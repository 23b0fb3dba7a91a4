"""
Space data proxy routes.

Upstream payloads are relayed unmodified and cached in-process, keyed by the
request path (plus query parameters where they change the payload).
"""

import logging
from datetime import date
from typing import Annotated, Any, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from adapters.space import SpaceDataClient, UpstreamError, get_space_data_client
from services.api_cache import api_cache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["space"])

SpaceClient = Annotated[SpaceDataClient, Depends(get_space_data_client)]

# The ISS moves ~8 km/s; an hour-old position is useless
ISS_TTL_SECONDS = 60


async def _cached(
    key: str,
    fetcher: Callable[[], Awaitable[Any]],
    error_message: str,
    ttl: Optional[float] = None,
) -> Any:
    try:
        return await api_cache.get_or_fetch(key, fetcher, ttl)
    except UpstreamError as e:
        logger.error("%s: %s", error_message, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_message,
        )


@router.get("/spacex/upcoming")
async def spacex_upcoming(client: SpaceClient):
    return await _cached(
        "/api/spacex/upcoming", client.spacex_upcoming, "Failed to fetch SpaceX upcoming launches"
    )


@router.get("/spacex/launches")
async def spacex_launches(client: SpaceClient):
    return await _cached(
        "/api/spacex/launches", client.spacex_launches, "Failed to fetch SpaceX launches"
    )


@router.get("/spacex/rockets")
async def spacex_rockets(client: SpaceClient):
    return await _cached(
        "/api/spacex/rockets", client.spacex_rockets, "Failed to fetch SpaceX rockets"
    )


@router.get("/spacex/company")
async def spacex_company(client: SpaceClient):
    return await _cached(
        "/api/spacex/company", client.spacex_company, "Failed to fetch SpaceX company info"
    )


@router.get("/launches/upcoming")
async def launches_upcoming(client: SpaceClient):
    return await _cached(
        "/api/launches/upcoming", client.launches_upcoming, "Failed to fetch upcoming launches"
    )


@router.get("/launches/previous")
async def launches_previous(client: SpaceClient):
    return await _cached(
        "/api/launches/previous", client.launches_previous, "Failed to fetch previous launches"
    )


@router.get("/iss/location")
async def iss_location(client: SpaceClient):
    return await _cached(
        "/api/iss/location",
        client.iss_location,
        "Failed to fetch ISS location",
        ttl=ISS_TTL_SECONDS,
    )


@router.get("/space/people")
async def people_in_space(client: SpaceClient):
    return await _cached(
        "/api/space/people", client.people_in_space, "Failed to fetch people in space"
    )


@router.get("/nasa/apod")
async def nasa_apod(
    client: SpaceClient,
    apod_date: Optional[date] = Query(None, alias="date"),
):
    """Astronomy Picture of the Day, optionally for a given ``YYYY-MM-DD``."""
    day = apod_date.isoformat() if apod_date else None
    key = f"/api/nasa/apod?date={day}" if day else "/api/nasa/apod"
    return await _cached(key, lambda: client.nasa_apod(day), "Failed to fetch NASA APOD")


@router.get("/nasa/neo")
async def nasa_neo(
    client: SpaceClient,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
):
    """Near-earth objects feed for a date range (NASA caps it at 7 days)."""
    start = start_date.isoformat() if start_date else None
    end = end_date.isoformat() if end_date else None
    key = "/api/nasa/neo"
    if start_date or end_date:
        key = f"{key}?start_date={start or ''}&end_date={end or ''}"
    return await _cached(
        key,
        lambda: client.nasa_neo(start, end),
        "Failed to fetch near-earth objects",
    )
