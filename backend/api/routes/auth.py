"""
Authentication API routes: register, login, logout and the current profile.

Sessions are signed cookies (``proxima.sid``) managed by Starlette's
``SessionMiddleware``; see :mod:`api.dependencies`.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import or_, select

from api.dependencies import CurrentUser, DbSession, login_session, logout_session
from api.errors import EMAIL_EXISTS, USERNAME_EXISTS, ConflictError, commit_or_conflict
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.auth import (
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from core.security.password import password_hasher
from infrastructure.database.models.user import User, UserRole
from services.site_settings import load_site_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("register"))
async def register(request: Request, body: RegisterRequest, db: DbSession):
    """
    Create an account and sign it in.

    Usernames and emails are stored lowercase. A duplicate of either returns
    400 with ``USERNAME_EXISTS`` / ``EMAIL_EXISTS`` and creates nothing.
    """
    site = await load_site_settings(db)
    if not site.allow_registration:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration is currently disabled",
        )

    username = body.username.lower()
    email = body.email.lower()

    existing = await db.execute(
        select(User.username, User.email).where(
            or_(User.username == username, User.email == email)
        )
    )
    for row in existing.all():
        if row.username == username:
            raise ConflictError(USERNAME_EXISTS)
        raise ConflictError(EMAIL_EXISTS)

    user = User(
        username=username,
        email=email,
        password_hash=password_hasher.hash(body.password),
        role=UserRole.USER.value,
    )
    db.add(user)
    await commit_or_conflict(db)
    await db.refresh(user)

    login_session(request, user)
    logger.info("Registered user %s", user.id)
    return user


@router.post("/login", response_model=UserResponse)
@limiter.limit(get_rate_limit("login"))
async def login(request: Request, body: LoginRequest, db: DbSession):
    """Sign in with email or username. Wrong credentials return 400."""
    identifier = body.identifier.lower()
    if not identifier:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username/email and password are required",
        )

    result = await db.execute(
        select(User).where(or_(User.email == identifier, User.username == identifier))
    )
    user = result.scalars().first()

    if user is None or not password_hasher.verify(body.password, user.password_hash):
        logger.info("Failed login for %r", identifier)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials",
        )

    if password_hasher.needs_rehash(user.password_hash):
        user.password_hash = password_hasher.hash(body.password)
    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)

    login_session(request, user)
    return user


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request):
    logout_session(request)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser):
    """The signed-in user. 401 when anonymous."""
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_me(body: ProfileUpdateRequest, current_user: CurrentUser, db: DbSession):
    """Update profile fields. Role, email, password and Stripe ids are not writable here."""
    updates = body.model_dump(exclude_unset=True)
    if "username" in updates and updates["username"]:
        updates["username"] = updates["username"].lower()

    for field, value in updates.items():
        setattr(current_user, field, value)

    await commit_or_conflict(db)
    await db.refresh(current_user)
    return current_user
