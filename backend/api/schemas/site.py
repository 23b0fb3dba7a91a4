"""
Site settings and search schemas.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SiteSettingsResponse(BaseModel):
    site_name: str
    site_tagline: str
    contact_email: Optional[str] = None
    maintenance_mode: bool
    maintenance_message: Optional[str] = None
    allow_registration: bool
    allow_comments: bool
    require_comment_approval: bool
    enable_ads: bool
    enable_subscriptions: bool
    newsletter_enabled: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SiteSettingsUpdateRequest(BaseModel):
    site_name: Optional[str] = Field(None, min_length=1, max_length=200)
    site_tagline: Optional[str] = Field(None, max_length=500)
    contact_email: Optional[str] = Field(None, max_length=255)
    maintenance_mode: Optional[bool] = None
    maintenance_message: Optional[str] = None
    allow_registration: Optional[bool] = None
    allow_comments: Optional[bool] = None
    require_comment_approval: Optional[bool] = None
    enable_ads: Optional[bool] = None
    enable_subscriptions: Optional[bool] = None
    newsletter_enabled: Optional[bool] = None


class SearchResponse(BaseModel):
    data: list[Any]
    total: int
    page: int
    total_pages: int


class SearchHistoryRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)
    result_count: int = Field(default=0, ge=0)


class PopularSearch(BaseModel):
    query: str
    count: int
