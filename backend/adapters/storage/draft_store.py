"""
Local draft mirror for the article editor.

Before each autosave hits the API, the snapshot is written here keyed by
article id (``new`` for articles that have not been saved yet), so an
interrupted session can be restored with a "last saved" notice.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Optional

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)

NEW_ARTICLE_KEY = "new"

_UNSAFE_KEY = re.compile(r"[^A-Za-z0-9_\-]")


@dataclass
class StoredDraft:
    """A mirrored editor snapshot."""

    key: str
    snapshot: dict[str, Any]
    saved_at: datetime


class DraftStore:
    """JSON files under ``base_path``, one per draft key."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)

    def _path(self, key: Optional[str]) -> Path:
        safe = _UNSAFE_KEY.sub("_", key or NEW_ARTICLE_KEY)
        return self.base_path / f"draft_{safe}.json"

    async def save(self, key: Optional[str], snapshot: dict[str, Any]) -> StoredDraft:
        """Write ``snapshot`` for ``key``, replacing any previous draft."""
        self.base_path.mkdir(parents=True, exist_ok=True)
        saved_at = datetime.now(UTC)
        payload = {"snapshot": snapshot, "saved_at": saved_at.isoformat()}

        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(payload, default=str))
        await aiofiles.os.replace(tmp_path, path)

        return StoredDraft(key=key or NEW_ARTICLE_KEY, snapshot=snapshot, saved_at=saved_at)

    async def load(self, key: Optional[str]) -> Optional[StoredDraft]:
        """Return the stored draft for ``key`` or None. Unreadable files count as missing."""
        path = self._path(key)
        if not await aiofiles.os.path.exists(path):
            return None

        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            raw = await f.read()
        try:
            payload = json.loads(raw)
            return StoredDraft(
                key=key or NEW_ARTICLE_KEY,
                snapshot=payload["snapshot"],
                saved_at=datetime.fromisoformat(payload["saved_at"]),
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring corrupt draft %s: %s", path.name, e)
            return None

    async def discard(self, key: Optional[str]) -> bool:
        """Delete the draft for ``key``. Returns False when there was none."""
        path = self._path(key)
        if not await aiofiles.os.path.exists(path):
            return False
        await aiofiles.os.remove(path)
        return True
