# CMS Adapters
# Ghost Content API integration

from .ghost_adapter import (
    GhostAdapter,
    GhostAPIError,
    GhostConfigError,
    GhostPostPage,
    get_ghost_adapter,
)

__all__ = [
    "GhostAdapter",
    "GhostAPIError",
    "GhostConfigError",
    "GhostPostPage",
    "get_ghost_adapter",
]
