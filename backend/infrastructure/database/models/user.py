"""
User database model.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType, TimestampMixin


class UserRole(str, Enum):
    """User roles enumeration, lowest privilege first."""

    USER = "user"
    AUTHOR = "author"
    EDITOR = "editor"
    ADMIN = "admin"


ROLE_RANK = {
    UserRole.USER.value: 0,
    UserRole.AUTHOR.value: 1,
    UserRole.EDITOR.value: 2,
    UserRole.ADMIN.value: 3,
}


class MembershipTier(str, Enum):
    """Membership tier enumeration, synced from Stripe."""

    FREE = "free"
    SUPPORTER = "supporter"
    PRO = "pro"


class User(Base, TimestampMixin):
    """User account model.

    Users are never hard-deleted by the API.
    """

    __tablename__ = "users"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Identity
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile
    profile_picture: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)
    theme_preference: Mapped[str] = mapped_column(String(50), default="dark", nullable=False)
    profile_customization: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)

    # Authorization
    role: Mapped[str] = mapped_column(
        String(50),
        default=UserRole.USER.value,
        nullable=False,
    )

    # Membership
    membership_tier: Mapped[str] = mapped_column(
        String(50),
        default=MembershipTier.FREE.value,
        nullable=False,
    )
    subscription_status: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )  # active, past_due, canceled, unpaid
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, unique=True
    )
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )

    # Login tracking
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_stripe_customer", "stripe_customer_id"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"

    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN.value

    @property
    def is_editor(self) -> bool:
        """Editors and admins may publish."""
        return self.role in (UserRole.EDITOR.value, UserRole.ADMIN.value)

    def has_role(self, minimum: UserRole) -> bool:
        """Check the user's role is at least *minimum*."""
        return ROLE_RANK.get(self.role, 0) >= ROLE_RANK[minimum.value]

    @property
    def membership_tier_enum(self) -> MembershipTier:
        """Get membership tier as enum."""
        return MembershipTier(self.membership_tier)
