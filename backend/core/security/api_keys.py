"""
API key generation and hashing.

Keys look like ``prx_<random>``. Only the SHA-256 hex digest is stored; the
raw key is shown to its owner once, at creation.
"""

import hashlib
import hmac
import secrets

KEY_PREFIX = "prx_"


def generate_api_key() -> str:
    """Create a new random API key."""
    return KEY_PREFIX + secrets.token_urlsafe(32)


def hash_api_key(raw_key: str) -> str:
    """Digest stored in ``api_keys.key_hash``."""
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def key_display_prefix(raw_key: str) -> str:
    """Leading characters kept in clear so owners can tell keys apart."""
    return raw_key[: len(KEY_PREFIX) + 6]


def keys_match(raw_key: str, key_hash: str) -> bool:
    return hmac.compare_digest(hash_api_key(raw_key), key_hash)
