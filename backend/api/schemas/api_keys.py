"""
API key schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiKeyCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    permissions: list[str] = Field(default_factory=lambda: ["read"])
    expires_at: Optional[datetime] = None


class ApiKeyResponse(BaseModel):
    """Stored key metadata. The raw key is never included."""

    id: str
    name: str
    key_prefix: str
    permissions: list[str]
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApiKeyCreatedResponse(ApiKeyResponse):
    """Returned once, at creation."""

    key: str
