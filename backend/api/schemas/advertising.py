"""
Advertisement schemas.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Placement = Literal["homepage", "sidebar", "inline", "banner"]


class AdvertisementCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    image_url: Optional[str] = Field(None, max_length=1000)
    link_url: str = Field(..., min_length=1, max_length=1000)
    placement: Placement
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def check_dates(self) -> "AdvertisementCreateRequest":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class AdvertisementUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    image_url: Optional[str] = Field(None, max_length=1000)
    link_url: Optional[str] = Field(None, min_length=1, max_length=1000)
    placement: Optional[Placement] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class AdvertisementResponse(BaseModel):
    id: str
    user_id: str
    title: str
    image_url: Optional[str] = None
    link_url: str
    placement: str
    start_date: datetime
    end_date: datetime
    is_approved: bool
    impressions: int
    clicks: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
