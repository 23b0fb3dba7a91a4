"""Database engine, sessions and ORM models."""

from .connection import (
    async_session_maker,
    close_db,
    engine,
    get_db,
    get_db_context,
    init_db,
)
from .models.base import Base, TimestampMixin

__all__ = [
    "Base",
    "TimestampMixin",
    "engine",
    "async_session_maker",
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
]
