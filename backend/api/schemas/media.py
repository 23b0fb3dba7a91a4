"""
Media library schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaResponse(BaseModel):
    id: str
    user_id: str
    file_name: str
    file_url: str
    file_type: str
    mime_type: str
    file_size: int
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MediaUpdateRequest(BaseModel):
    file_name: Optional[str] = Field(None, min_length=1, max_length=500)
    alt_text: Optional[str] = Field(None, max_length=500)
    caption: Optional[str] = None


class MediaListResponse(BaseModel):
    items: list[MediaResponse]
    total: int
    page: int
    limit: int
