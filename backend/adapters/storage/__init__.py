"""Storage adapters for media files and editor drafts."""

from .draft_store import NEW_ARTICLE_KEY, DraftStore, StoredDraft
from .media_storage import (
    LocalStorageAdapter,
    S3StorageAdapter,
    StorageAdapter,
    StorageError,
    get_storage_adapter,
    storage_adapter,
)

__all__ = [
    "StorageAdapter",
    "StorageError",
    "LocalStorageAdapter",
    "S3StorageAdapter",
    "get_storage_adapter",
    "storage_adapter",
    "DraftStore",
    "StoredDraft",
    "NEW_ARTICLE_KEY",
]
