"""
Unit tests for password hashing and API key helpers.
"""

from core.security.api_keys import (
    KEY_PREFIX,
    generate_api_key,
    hash_api_key,
    key_display_prefix,
    keys_match,
)
from core.security.password import PasswordHasher


class TestPasswordHasher:
    """Use low rounds; the production default is 12."""

    def test_hash_and_verify(self):
        hasher = PasswordHasher(rounds=4)
        hashed = hasher.hash("correct horse")

        assert hashed != "correct horse"
        assert hasher.verify("correct horse", hashed) is True
        assert hasher.verify("wrong horse", hashed) is False

    def test_plaintext_row_never_matches(self):
        assert PasswordHasher(rounds=4).verify("secret", "secret") is False


class TestApiKeys:
    def test_generated_key_shape(self):
        key = generate_api_key()
        assert key.startswith(KEY_PREFIX)
        assert len(key) > 40
        assert generate_api_key() != key

    def test_hash_is_stable_sha256(self):
        assert hash_api_key("prx_abc") == hash_api_key("prx_abc")
        assert len(hash_api_key("prx_abc")) == 64

    def test_display_prefix(self):
        assert key_display_prefix("prx_abcdefghij") == "prx_abcdef"

    def test_keys_match(self):
        key = generate_api_key()
        assert keys_match(key, hash_api_key(key)) is True
        assert keys_match(key + "x", hash_api_key(key)) is False
