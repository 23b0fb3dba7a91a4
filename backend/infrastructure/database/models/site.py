"""
Site-wide settings model (single row).
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class SiteSettings(Base, TimestampMixin):
    """Admin-editable site configuration."""

    __tablename__ = "site_settings"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    site_name: Mapped[str] = mapped_column(String(200), default="Proxima Report", nullable=False)
    site_tagline: Mapped[str] = mapped_column(
        String(500), default="Space and STEM news", nullable=False
    )
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    maintenance_mode: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    maintenance_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    allow_registration: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_comments: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    require_comment_approval: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    enable_ads: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    enable_subscriptions: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    newsletter_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    updated_by: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
