"""
Article, byline and comment schemas.
"""

import logging
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.domain.blocks import BlockValidationError, normalize_content

logger = logging.getLogger(__name__)


def _validate_blocks(v: Any) -> list[dict[str, Any]]:
    try:
        return normalize_content(v)
    except BlockValidationError as e:
        details = "; ".join(f"{err['field']}: {err['message']}" for err in e.errors)
        raise ValueError(f"{e}: {details}" if details else str(e)) from e


# ============================================================================
# Article Schemas
# ============================================================================


class ArticleCreateRequest(BaseModel):
    """Create an article. It always starts as a draft."""

    title: str = Field(..., min_length=1, max_length=500)
    slug: Optional[str] = Field(None, max_length=500)
    summary: str = Field(default="", max_length=5000)
    content: list[dict[str, Any]] = Field(default_factory=list)
    category: str = Field(default="news", max_length=100)
    tags: list[str] = Field(default_factory=list)
    featured_image: Optional[str] = Field(None, max_length=1000)
    is_breaking: bool = False
    is_premium: bool = False
    coauthor_ids: list[str] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: Any) -> list[dict[str, Any]]:
        return _validate_blocks(v)


class ArticleUpdateRequest(BaseModel):
    """Content save. Status is deliberately absent; see the status endpoint."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    slug: Optional[str] = Field(None, min_length=1, max_length=500)
    summary: Optional[str] = Field(None, max_length=5000)
    content: Optional[list[dict[str, Any]]] = None
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[list[str]] = None
    featured_image: Optional[str] = Field(None, max_length=1000)
    is_breaking: Optional[bool] = None
    is_premium: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: Any) -> Optional[list[dict[str, Any]]]:
        if v is None:
            return None
        return _validate_blocks(v)


class StatusChangeRequest(BaseModel):
    status: Literal["draft", "published", "needs_edits", "archived"]


class BylineResponse(BaseModel):
    """One user on an article byline."""

    user_id: str
    username: str
    profile_picture: Optional[str] = None
    role: str


class ArticleResponse(BaseModel):
    """Article response."""

    id: str
    primary_author_id: str
    title: str
    slug: str
    summary: str
    content: list[dict[str, Any]]
    category: str
    tags: list[str]
    featured_image: Optional[str] = None
    is_breaking: bool
    is_premium: bool
    read_time: int
    view_count: int
    status: str
    published_at: Optional[datetime] = None
    newsletter_sent_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    bylines: list[BylineResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("content", mode="before")
    @classmethod
    def normalize_stored_content(cls, v: Any) -> Any:
        # Rows written by older editors may hold legacy block shapes
        try:
            return normalize_content(v)
        except BlockValidationError as e:
            logger.warning("Serving unnormalized article content: %s", e)
            return v or []


class ArticleSummaryResponse(BaseModel):
    """Article card without the block content."""

    id: str
    primary_author_id: str
    title: str
    slug: str
    summary: str
    category: str
    tags: list[str]
    featured_image: Optional[str] = None
    is_breaking: bool
    is_premium: bool
    read_time: int
    view_count: int
    status: str
    published_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    has_more: bool


class ArticleListResponse(BaseModel):
    articles: list[ArticleSummaryResponse]
    pagination: PaginationInfo


class StatusChangeResponse(BaseModel):
    success: bool = True
    article: ArticleResponse
    message: str


class AddAuthorRequest(BaseModel):
    user_id: str
    role: Literal["coauthor", "editor"] = "coauthor"


# ============================================================================
# Comment Schemas
# ============================================================================


class CommentCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    parent_id: Optional[str] = None


class CommentUpdateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class VoteRequest(BaseModel):
    vote_type: Literal["up", "down"]


class CommentResponse(BaseModel):
    """Comment with nested replies."""

    id: str
    article_id: str
    author_id: str
    author_username: Optional[str] = None
    parent_id: Optional[str] = None
    content: str
    upvotes: int
    downvotes: int
    score: int
    created_at: datetime
    updated_at: datetime
    replies: list["CommentResponse"] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
