"""
API key management routes.
"""

import logging

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import select

from api.dependencies import CurrentUser, DbSession
from api.schemas.api_keys import ApiKeyCreatedResponse, ApiKeyCreateRequest, ApiKeyResponse
from core.security.api_keys import generate_api_key, hash_api_key, key_display_prefix
from infrastructure.database.models.api_key import ApiKey

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


@router.get("", response_model=list[ApiKeyResponse])
async def list_api_keys(current_user: CurrentUser, db: DbSession):
    result = await db.execute(
        select(ApiKey).where(ApiKey.user_id == current_user.id).order_by(ApiKey.created_at)
    )
    return list(result.scalars().all())


@router.post("", response_model=ApiKeyCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_api_key(body: ApiKeyCreateRequest, current_user: CurrentUser, db: DbSession):
    """Create a key. The raw key is in this response only; it is stored hashed."""
    raw_key = generate_api_key()
    api_key = ApiKey(
        user_id=current_user.id,
        name=body.name,
        key_hash=hash_api_key(raw_key),
        key_prefix=key_display_prefix(raw_key),
        permissions=body.permissions,
        expires_at=body.expires_at,
    )
    db.add(api_key)
    await db.commit()
    await db.refresh(api_key)

    logger.info("API key %s created for user %s", api_key.id, current_user.id)
    stored = ApiKeyResponse.model_validate(api_key)
    return ApiKeyCreatedResponse(**stored.model_dump(), key=raw_key)


@router.delete("/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_api_key(key_id: str, current_user: CurrentUser, db: DbSession):
    result = await db.execute(
        select(ApiKey).where(ApiKey.id == key_id, ApiKey.user_id == current_user.id)
    )
    api_key = result.scalar_one_or_none()
    if api_key is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="API key not found")

    await db.delete(api_key)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
