"""
Authentication, profile and user management schemas.
"""

import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

_USERNAME = re.compile(r"^[A-Za-z0-9_.-]+$")


def _validate_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not any(c.isalpha() for c in v):
        raise ValueError("Password must contain at least one letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one digit")
    return v


class RegisterRequest(BaseModel):
    """Registration request schema."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not _USERNAME.match(v):
            raise ValueError("Username may only contain letters, digits, '.', '_' and '-'")
        return v

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _validate_password_strength(v)


class LoginRequest(BaseModel):
    """Login with either email or username."""

    username: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    password: str = Field(..., min_length=1)

    @property
    def identifier(self) -> str:
        return (self.email or self.username or "").strip()


class UserResponse(BaseModel):
    """User as returned to its owner and admins. Never includes the password."""

    id: str
    username: str
    email: str
    profile_picture: Optional[str] = None
    bio: str = ""
    theme_preference: str = "dark"
    profile_customization: dict[str, Any] = Field(default_factory=dict)
    role: str
    membership_tier: str
    subscription_status: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublicUserResponse(BaseModel):
    """User as shown to other readers."""

    id: str
    username: str
    profile_picture: Optional[str] = None
    bio: str = ""
    role: str
    membership_tier: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    """Fields a user may change on their own profile."""

    username: Optional[str] = Field(None, min_length=3, max_length=50)
    profile_picture: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=2000)
    theme_preference: Optional[str] = Field(None, max_length=50)
    profile_customization: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="ignore")


class UserUpdateRequest(ProfileUpdateRequest):
    """PATCH /users/{id}: profile fields, plus role for admins."""

    role: Optional[str] = Field(None, pattern="^(user|author|editor|admin)$")


class PasswordChangeRequest(BaseModel):
    """Password change request schema."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _validate_password_strength(v)


class MessageResponse(BaseModel):
    message: str
