"""
API request and response schemas.
"""

from .auth import (
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    PublicUserResponse,
    RegisterRequest,
    UserResponse,
    UserUpdateRequest,
)
from .content import (
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdateRequest,
    CommentResponse,
    StatusChangeRequest,
)

__all__ = [
    "LoginRequest",
    "RegisterRequest",
    "UserResponse",
    "PublicUserResponse",
    "ProfileUpdateRequest",
    "UserUpdateRequest",
    "PasswordChangeRequest",
    "ArticleCreateRequest",
    "ArticleUpdateRequest",
    "ArticleResponse",
    "ArticleListResponse",
    "StatusChangeRequest",
    "CommentResponse",
]
