"""
Maintenance mode gate.

While ``site_settings.maintenance_mode`` is on, every API call from a
non-admin session gets a 503 ``{"maintenanceMode": true, "message": ...}``.
Auth endpoints and the settings endpoint stay reachable so admins can sign
in and switch maintenance off, and clients can render the notice.

Installed as a router-level dependency so it shares the request's database
session.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_optional_user
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services.site_settings import load_site_settings

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "We're currently performing scheduled maintenance. Please check back soon."

EXEMPT_PATHS = frozenset(
    {
        "/api/site-settings",
        "/api/me",
        "/api/login",
        "/api/register",
        "/api/logout",
        "/api/health",
        "/api/stripe/webhook",
    }
)


class MaintenanceModeError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


async def enforce_maintenance_mode(
    request: Request,
    user: Annotated[Optional[User], Depends(get_optional_user)],
    db: AsyncSession = Depends(get_db),
) -> None:
    if request.url.path.rstrip("/") in EXEMPT_PATHS:
        return
    if user is not None and user.is_admin:
        return

    site = await load_site_settings(db)
    if site.maintenance_mode:
        raise MaintenanceModeError(site.maintenance_message or DEFAULT_MESSAGE)


async def maintenance_exception_handler(request: Request, exc: MaintenanceModeError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"maintenanceMode": True, "message": exc.message},
    )
