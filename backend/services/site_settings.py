"""
Access to the single-row site settings table.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models.site import SiteSettings


async def load_site_settings(db: AsyncSession) -> SiteSettings:
    """Return the settings row, creating it with defaults on first use."""
    result = await db.execute(select(SiteSettings).order_by(SiteSettings.created_at).limit(1))
    row = result.scalar_one_or_none()
    if row is None:
        row = SiteSettings()
        db.add(row)
        await db.flush()
    return row
