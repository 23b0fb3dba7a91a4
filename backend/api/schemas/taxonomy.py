"""
Taxonomy schemas (tags and categories).
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TaxonomyCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=200)
    type: Literal["tag", "category"] = "tag"
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)
    parent_id: Optional[str] = None


class TaxonomyUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)
    parent_id: Optional[str] = None


class TaxonomyResponse(BaseModel):
    id: str
    name: str
    slug: str
    type: str
    description: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ArticleTaxonomyItem(BaseModel):
    taxonomy_id: str
    is_primary: bool = False


class ArticleTaxonomySetRequest(BaseModel):
    """Replace the article's taxonomy links."""

    items: list[ArticleTaxonomyItem] = Field(default_factory=list)


class ArticleTaxonomyResponse(TaxonomyResponse):
    is_primary: bool = False


class LegacyTermResponse(BaseModel):
    """Row from the legacy categories/tags tables."""

    id: str
    name: str
    slug: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
