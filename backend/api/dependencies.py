"""
API dependencies for authentication and authorization.

Browser clients authenticate with the signed ``proxima.sid`` session cookie
(Starlette ``SessionMiddleware``), which holds ``user_id`` and ``is_admin``.
Read endpoints that serve third parties also accept an ``X-API-Key`` header.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.security.api_keys import hash_api_key
from infrastructure.database.connection import get_db
from infrastructure.database.models.api_key import ApiKey
from infrastructure.database.models.user import User, UserRole

SESSION_USER_KEY = "user_id"


def login_session(request: Request, user: User) -> None:
    """Bind ``user`` to the request session."""
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.clear()


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Session user, or None for anonymous requests."""
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        # Account removed since login
        request.session.clear()
    return user


async def get_current_user(
    user: Annotated[Optional[User], Depends(get_optional_user)],
) -> User:
    """Dependency for endpoints that require a signed-in user."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


def require_role(minimum: UserRole, detail: str):
    """Build a dependency that requires at least ``minimum`` role."""

    async def dependency(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if not current_user.has_role(minimum):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return current_user

    return dependency


get_current_author = require_role(UserRole.AUTHOR, "Author permission required")
get_current_admin_user = require_role(UserRole.ADMIN, "Admin access required")


async def get_api_key_user(
    x_api_key: Annotated[Optional[str], Header(alias="X-API-Key")] = None,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Resolve the owner of an ``X-API-Key`` header.

    Returns None when no header is sent. An unknown or expired key is a 401.
    """
    if not x_api_key:
        return None

    result = await db.execute(select(ApiKey).where(ApiKey.key_hash == hash_api_key(x_api_key)))
    api_key = result.scalar_one_or_none()

    now = datetime.now(timezone.utc)
    expires_at = api_key.expires_at if api_key else None
    if expires_at is not None and expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if api_key is None or (expires_at is not None and expires_at <= now):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )

    api_key.last_used_at = now
    await db.commit()

    owner = await db.execute(select(User).where(User.id == api_key.user_id))
    return owner.scalar_one_or_none()


async def get_reader(
    session_user: Annotated[Optional[User], Depends(get_optional_user)],
    api_key_user: Annotated[Optional[User], Depends(get_api_key_user)],
) -> Optional[User]:
    """Reader identity for public content: session first, then API key."""
    return session_user or api_key_user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
Reader = Annotated[Optional[User], Depends(get_reader)]
AuthorUser = Annotated[User, Depends(get_current_author)]
AdminUser = Annotated[User, Depends(get_current_admin_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
