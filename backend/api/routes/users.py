"""
User management routes.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import desc, func, select

from api.dependencies import AdminUser, CurrentUser, DbSession, OptionalUser
from api.errors import commit_or_conflict
from api.schemas.auth import (
    MessageResponse,
    PasswordChangeRequest,
    PublicUserResponse,
    UserResponse,
    UserUpdateRequest,
)
from api.schemas.content import ArticleSummaryResponse
from core.security.password import password_hasher
from infrastructure.database.models.content import Article, ArticleStatus
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

_NULLABLE_FIELDS = {"profile_picture"}


async def _get_user_or_404(db, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("", response_model=list[UserResponse])
async def list_users(
    admin: AdminUser,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
):
    result = await db.execute(
        select(User).order_by(User.created_at).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars().all())


@router.get("/{user_id}", response_model=PublicUserResponse)
async def get_user(user_id: str, db: DbSession):
    return await _get_user_or_404(db, user_id)


@router.get("/{user_id}/articles", response_model=list[ArticleSummaryResponse])
async def get_user_articles(
    user_id: str,
    db: DbSession,
    viewer: OptionalUser,
    limit: int = Query(20, ge=1, le=100),
):
    """Articles by a user. Drafts only for the user themselves and editors."""
    await _get_user_or_404(db, user_id)
    query = select(Article).where(Article.primary_author_id == user_id)
    if viewer is None or (viewer.id != user_id and not viewer.is_editor):
        query = query.where(Article.status == ArticleStatus.PUBLISHED.value)
    result = await db.execute(
        query.order_by(desc(func.coalesce(Article.published_at, Article.created_at))).limit(limit)
    )
    return list(result.scalars().all())


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Self or admin. Only admins may change roles."""
    if current_user.id != user_id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own profile",
        )

    user = current_user if current_user.id == user_id else await _get_user_or_404(db, user_id)
    updates = body.model_dump(exclude_unset=True)

    if "role" in updates:
        if not current_user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can change roles",
            )
        logger.info("Admin %s set role of %s to %s", current_user.id, user.id, updates["role"])
    if updates.get("username"):
        updates["username"] = updates["username"].lower()

    for field, value in updates.items():
        if value is None and field not in _NULLABLE_FIELDS:
            continue
        setattr(user, field, value)

    await commit_or_conflict(db)
    await db.refresh(user)
    return user


@router.patch("/{user_id}/password", response_model=MessageResponse)
async def change_password(
    user_id: str,
    body: PasswordChangeRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Change your own password; the current password is required."""
    if current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only change your own password",
        )
    if not password_hasher.verify(body.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    current_user.password_hash = password_hasher.hash(body.new_password)
    await db.commit()
    logger.info("Password changed for user %s", current_user.id)
    return {"message": "Password updated successfully"}
