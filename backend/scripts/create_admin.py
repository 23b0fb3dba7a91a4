"""
Create or promote the site administrator.

Reads ADMIN_EMAIL and ADMIN_PASSWORD (and optionally ADMIN_USERNAME) from the
environment / .env. An existing user with that email is promoted to admin
and gets the new password; otherwise a fresh admin account is created.

Usage (from backend/):
    python -m scripts.create_admin
"""

import asyncio
import logging
import sys

from sqlalchemy import or_, select

from core.security.password import password_hasher
from infrastructure.config.settings import settings
from infrastructure.database import close_db, get_db_context
from infrastructure.database.models.user import User, UserRole
from infrastructure.logging_config import setup_logging

logger = logging.getLogger("scripts.create_admin")


async def ensure_admin(email: str, password: str, username: str) -> User:
    """Create the admin user, or promote the existing account with this email."""
    email = email.lower()
    username = username.lower()

    async with get_db_context() as db:
        result = await db.execute(
            select(User).where(or_(User.email == email, User.username == username))
        )
        users = list(result.scalars().all())
        user = next((u for u in users if u.email == email), None)

        if user is not None:
            user.role = UserRole.ADMIN.value
            user.password_hash = password_hasher.hash(password)
            logger.info("Promoted existing user %s to admin", user.id)
        else:
            if users:
                raise SystemExit(f"Username {username!r} is taken by another account")
            user = User(
                username=username,
                email=email,
                password_hash=password_hasher.hash(password),
                role=UserRole.ADMIN.value,
            )
            db.add(user)
            await db.flush()
            logger.info("Created admin user %s", user.id)
    return user


async def main() -> int:
    setup_logging(level="INFO")
    if not settings.admin_email or not settings.admin_password:
        logger.error("ADMIN_EMAIL and ADMIN_PASSWORD must be set")
        return 1
    if len(settings.admin_password) < 8:
        logger.error("ADMIN_PASSWORD must be at least 8 characters")
        return 1

    try:
        await ensure_admin(settings.admin_email, settings.admin_password, settings.admin_username)
    finally:
        await close_db()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
