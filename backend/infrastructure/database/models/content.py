"""
Content database models: Article and ArticleAuthor.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, JSONType, TimestampMixin, utcnow


class ArticleStatus(str, Enum):
    """Article status enumeration."""

    DRAFT = "draft"
    PUBLISHED = "published"
    NEEDS_EDITS = "needs_edits"
    ARCHIVED = "archived"


class AuthorRole(str, Enum):
    """Byline role of a user on an article."""

    PRIMARY = "primary"
    COAUTHOR = "coauthor"
    EDITOR = "editor"


class Article(Base, TimestampMixin):
    """News article with block-based content."""

    __tablename__ = "articles"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Primary byline
    primary_author_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    # Content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    summary: Mapped[str] = mapped_column(Text, default="", nullable=False)
    content: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    """
    Ordered list of content blocks, canonical shape:
    [
        {"id": "<uuid>", "type": "heading", "level": 2, "content": "Launch window"},
        {"id": "<uuid>", "type": "paragraph", "content": "Liftoff is set for..."},
        ...
    ]
    """

    # Classification
    category: Mapped[str] = mapped_column(String(100), default="news", nullable=False)
    tags: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # Presentation
    featured_image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    is_breaking: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_time: Mapped[int] = mapped_column(Integer, default=1, nullable=False)  # minutes
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Workflow
    status: Mapped[str] = mapped_column(
        String(50),
        default=ArticleStatus.DRAFT.value,
        nullable=False,
        index=True,
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    newsletter_sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    authors: Mapped[List["ArticleAuthor"]] = relationship(
        "ArticleAuthor",
        back_populates="article",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_articles_status_published", "status", "published_at"),
    )

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, slug={self.slug}, status={self.status})>"

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED.value


class ArticleAuthor(Base):
    """Join row linking a user to an article byline."""

    __tablename__ = "article_authors"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    article_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(50),
        default=AuthorRole.COAUTHOR.value,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    article: Mapped["Article"] = relationship("Article", back_populates="authors")

    __table_args__ = (
        UniqueConstraint("article_id", "user_id", name="uq_article_authors_article_user"),
    )

    def __repr__(self) -> str:
        return f"<ArticleAuthor(article_id={self.article_id}, user_id={self.user_id}, role={self.role})>"
