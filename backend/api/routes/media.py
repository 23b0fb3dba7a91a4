"""
Media library routes.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy import func, select

from adapters.storage import StorageAdapter, StorageError, storage_adapter
from api.dependencies import AuthorUser, DbSession
from api.schemas.media import MediaListResponse, MediaResponse, MediaUpdateRequest
from infrastructure.config.settings import settings
from infrastructure.database.models.media import MediaFileType, MediaItem
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["media"])

Storage = Annotated[StorageAdapter, Depends(storage_adapter)]

_DOCUMENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
}


def media_file_type(mime_type: str) -> Optional[MediaFileType]:
    """Library category for a MIME type, or None when it is not accepted."""
    major = mime_type.split("/", 1)[0]
    if major == "image":
        return MediaFileType.IMAGE
    if major == "video":
        return MediaFileType.VIDEO
    if major == "audio":
        return MediaFileType.AUDIO
    if mime_type in _DOCUMENT_TYPES:
        return MediaFileType.DOCUMENT
    return None


async def _get_owned_item(db, media_id: str, user: User) -> MediaItem:
    item = (await db.execute(select(MediaItem).where(MediaItem.id == media_id))).scalar_one_or_none()
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    if item.user_id != user.id and not user.is_editor:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own media",
        )
    return item


@router.get("", response_model=MediaListResponse)
async def list_media(
    current_user: AuthorUser,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(24, ge=1, le=100),
    file_type: Optional[str] = Query(None, pattern="^(image|video|document|audio)$"),
):
    """Library listing: everything for editors, own uploads otherwise."""
    conditions = []
    if not current_user.is_editor:
        conditions.append(MediaItem.user_id == current_user.id)
    if file_type:
        conditions.append(MediaItem.file_type == file_type)

    total = (
        await db.execute(select(func.count()).select_from(MediaItem).where(*conditions))
    ).scalar_one()
    result = await db.execute(
        select(MediaItem)
        .where(*conditions)
        .order_by(MediaItem.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return MediaListResponse(
        items=[MediaResponse.model_validate(m) for m in result.scalars().all()],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{media_id}", response_model=MediaResponse)
async def get_media(media_id: str, current_user: AuthorUser, db: DbSession):
    item = (await db.execute(select(MediaItem).where(MediaItem.id == media_id))).scalar_one_or_none()
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    return item


@router.post("", response_model=MediaResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    current_user: AuthorUser,
    db: DbSession,
    storage: Storage,
    file: UploadFile = File(...),
    alt_text: Optional[str] = Form(None),
    caption: Optional[str] = Form(None),
):
    """Upload a file (multipart field ``file``)."""
    mime_type = file.content_type or "application/octet-stream"
    file_type = media_file_type(mime_type)
    if file_type is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type: {mime_type}",
        )

    data = await file.read(settings.media_max_upload_bytes + 1)
    if len(data) > settings.media_max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large (max {settings.media_max_upload_bytes // (1024 * 1024)} MB)",
        )
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")

    try:
        key = await storage.save(data, file.filename or "upload", mime_type)
    except StorageError as e:
        logger.error("Failed to store upload from user %s: %s", current_user.id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store file",
        )

    item = MediaItem(
        user_id=current_user.id,
        file_name=file.filename or key.rsplit("/", 1)[-1],
        file_url=storage.public_url(key),
        storage_path=key,
        file_type=file_type.value,
        mime_type=mime_type,
        file_size=len(data),
        alt_text=alt_text,
        caption=caption,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


@router.patch("/{media_id}", response_model=MediaResponse)
async def update_media(
    media_id: str, body: MediaUpdateRequest, current_user: AuthorUser, db: DbSession
):
    item = await _get_owned_item(db, media_id, current_user)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field == "file_name":
            continue
        setattr(item, field, value)
    await db.commit()
    await db.refresh(item)
    return item


@router.delete("/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_media(media_id: str, current_user: AuthorUser, db: DbSession, storage: Storage):
    item = await _get_owned_item(db, media_id, current_user)
    if not await storage.delete(item.storage_path):
        logger.warning("Stored file for media %s was already gone", item.id)
    await db.delete(item)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
