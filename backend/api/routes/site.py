"""
Site settings routes.
"""

import logging

from fastapi import APIRouter

from api.dependencies import AdminUser, DbSession
from api.schemas.site import SiteSettingsResponse, SiteSettingsUpdateRequest
from services.site_settings import load_site_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/site-settings", tags=["site"])

# Columns that must never be set to NULL
_REQUIRED = {
    "site_name",
    "site_tagline",
    "maintenance_mode",
    "allow_registration",
    "allow_comments",
    "require_comment_approval",
    "enable_ads",
    "enable_subscriptions",
    "newsletter_enabled",
}


@router.get("", response_model=SiteSettingsResponse)
async def get_site_settings(db: DbSession):
    site = await load_site_settings(db)
    await db.commit()
    return site


@router.patch("", response_model=SiteSettingsResponse)
async def update_site_settings(body: SiteSettingsUpdateRequest, admin: AdminUser, db: DbSession):
    site = await load_site_settings(db)
    updates = body.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if value is None and field in _REQUIRED:
            continue
        setattr(site, field, value)
    site.updated_by = admin.id

    await db.commit()
    await db.refresh(site)
    if "maintenance_mode" in updates:
        logger.warning("Maintenance mode set to %s by admin %s", site.maintenance_mode, admin.id)
    return site
