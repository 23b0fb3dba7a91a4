"""
Security utilities for authentication and authorization.
"""

from .api_keys import generate_api_key, hash_api_key, key_display_prefix
from .password import PasswordHasher, password_hasher

__all__ = [
    "PasswordHasher",
    "password_hasher",
    "generate_api_key",
    "hash_api_key",
    "key_display_prefix",
]
