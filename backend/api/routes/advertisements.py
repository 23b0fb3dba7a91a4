"""
Advertisement routes.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import select, update

from api.dependencies import AdminUser, CurrentUser, DbSession
from api.schemas.advertising import (
    AdvertisementCreateRequest,
    AdvertisementResponse,
    AdvertisementUpdateRequest,
    Placement,
)
from infrastructure.database.models.advertising import Advertisement
from services.site_settings import load_site_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/advertisements", tags=["advertisements"])


async def _get_ad_or_404(db, ad_id: str) -> Advertisement:
    ad = (await db.execute(select(Advertisement).where(Advertisement.id == ad_id))).scalar_one_or_none()
    if ad is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Advertisement not found")
    return ad


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def _bump(db, ad_id: str, column) -> None:
    result = await db.execute(
        update(Advertisement)
        .where(Advertisement.id == ad_id)
        .values({column.key: column + 1})
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Advertisement not found")
    await db.commit()


@router.get("", response_model=list[AdvertisementResponse])
async def list_active_ads(db: DbSession, placement: Optional[Placement] = None):
    """Approved ads running now, optionally for one placement."""
    site = await load_site_settings(db)
    if not site.enable_ads:
        return []

    now = datetime.now(timezone.utc)
    query = select(Advertisement).where(
        Advertisement.is_approved.is_(True),
        Advertisement.start_date <= now,
        Advertisement.end_date >= now,
    )
    if placement:
        query = query.where(Advertisement.placement == placement)
    result = await db.execute(query.order_by(Advertisement.created_at))
    return list(result.scalars().all())


@router.get("/all", response_model=list[AdvertisementResponse])
async def list_all_ads(admin: AdminUser, db: DbSession):
    result = await db.execute(select(Advertisement).order_by(Advertisement.created_at.desc()))
    return list(result.scalars().all())


@router.get("/mine", response_model=list[AdvertisementResponse])
async def list_my_ads(current_user: CurrentUser, db: DbSession):
    result = await db.execute(
        select(Advertisement)
        .where(Advertisement.user_id == current_user.id)
        .order_by(Advertisement.created_at.desc())
    )
    return list(result.scalars().all())


@router.post("", response_model=AdvertisementResponse, status_code=status.HTTP_201_CREATED)
async def create_ad(body: AdvertisementCreateRequest, current_user: CurrentUser, db: DbSession):
    """Submit an ad. It stays hidden until an admin approves it."""
    ad = Advertisement(user_id=current_user.id, is_approved=False, **body.model_dump())
    db.add(ad)
    await db.commit()
    await db.refresh(ad)
    logger.info("Advertisement %s submitted by user %s", ad.id, current_user.id)
    return ad


@router.patch("/{ad_id}", response_model=AdvertisementResponse)
async def update_ad(
    ad_id: str, body: AdvertisementUpdateRequest, current_user: CurrentUser, db: DbSession
):
    ad = await _get_ad_or_404(db, ad_id)
    if ad.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own advertisements",
        )

    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None or field == "image_url":
            setattr(ad, field, value)
    if _as_utc(ad.end_date) <= _as_utc(ad.start_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be after start_date",
        )
    # Edited ads go back through review
    if not current_user.is_admin:
        ad.is_approved = False

    await db.commit()
    await db.refresh(ad)
    return ad


@router.post("/{ad_id}/approve", response_model=AdvertisementResponse)
async def approve_ad(ad_id: str, admin: AdminUser, db: DbSession):
    ad = await _get_ad_or_404(db, ad_id)
    ad.is_approved = True
    await db.commit()
    await db.refresh(ad)
    logger.info("Advertisement %s approved by admin %s", ad.id, admin.id)
    return ad


@router.post("/{ad_id}/click", status_code=status.HTTP_204_NO_CONTENT)
async def record_click(ad_id: str, db: DbSession):
    await _bump(db, ad_id, Advertisement.clicks)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{ad_id}/impression", status_code=status.HTTP_204_NO_CONTENT)
async def record_impression(ad_id: str, db: DbSession):
    await _bump(db, ad_id, Advertisement.impressions)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{ad_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ad(ad_id: str, current_user: CurrentUser, db: DbSession):
    ad = await _get_ad_or_404(db, ad_id)
    if ad.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own advertisements",
        )
    await db.delete(ad)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
