"""
Newsletter subscription model.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class SubscriptionState(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    UNSUBSCRIBED = "unsubscribed"


class NewsletterSubscription(Base, TimestampMixin):
    """Double opt-in newsletter subscriber."""

    __tablename__ = "newsletter_subscriptions"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=SubscriptionState.PENDING.value,
        nullable=False,
        index=True,
    )
    verification_token: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, nullable=True
    )
    unsubscribe_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    unsubscribed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<NewsletterSubscription(email={self.email}, status={self.status})>"
