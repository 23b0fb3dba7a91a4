"""
Password hashing utilities using bcrypt.
"""

from passlib.context import CryptContext


class PasswordHasher:
    """Password hashing and verification using bcrypt."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password to hash

        Returns:
            Hashed password string
        """
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against a stored hash.

        Malformed or non-bcrypt hashes (e.g. rows imported without hashing)
        never match.
        """
        try:
            return self._context.verify(plain_password, hashed_password)
        except ValueError:
            return False

    def needs_rehash(self, hashed_password: str) -> bool:
        """Check whether a stored hash was made with outdated parameters."""
        return self._context.needs_update(hashed_password)


# Singleton instance
password_hasher = PasswordHasher()
