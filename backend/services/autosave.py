"""
Debounced autosave for the article editor.

Each edit calls :meth:`AutosaveScheduler.schedule` with a snapshot of the
tracked fields. The scheduler keeps a single timer; every new edit restarts
it, so a burst of edits produces one save one debounce window after the last
edit. When the timer fires, the snapshot is mirrored to the local draft store
first and then handed to the ``save`` coroutine (PATCH or POST to the
articles API). Autosave always saves with status ``draft``.

Usage::

    scheduler = AutosaveScheduler(save=client.save_article, draft_store=store)
    scheduler.schedule({"title": "Starship flight 9", "content": blocks})
    ...
    await scheduler.flush()  # on close
"""

import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any, Optional

from adapters.storage.draft_store import NEW_ARTICLE_KEY, DraftStore, StoredDraft
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

SaveCallable = Callable[[dict[str, Any]], Awaitable[Any]]

# Failures whose message mentions one of these also raise a toast
_NOTIFY_MARKERS = ("network", "timeout", "permission")


class AutosaveScheduler:
    """Single-timer debounced autosave with a local draft mirror."""

    def __init__(
        self,
        save: SaveCallable,
        delay: Optional[float] = None,
        draft_store: Optional[DraftStore] = None,
        draft_key: Optional[str] = None,
    ) -> None:
        self._save = save
        self.delay = settings.autosave_delay_seconds if delay is None else delay
        self.draft_store = draft_store
        self.draft_key = draft_key or NEW_ARTICLE_KEY

        self._pending: Optional[dict[str, Any]] = None
        self._last_saved_snapshot: Optional[dict[str, Any]] = None
        self._timer: Optional[asyncio.Task] = None
        # Held for the whole of a save so a flush waits for the one in flight
        self._save_lock = asyncio.Lock()

        self.last_saved_at: Optional[datetime] = None
        self.save_count = 0
        self.is_saving = False
        self.warning: Optional[str] = None
        self.notify: Optional[str] = None

    # ── Scheduling ───────────────────────────────────────────────────────────

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def schedule(self, snapshot: Mapping[str, Any]) -> None:
        """Record the latest editor state and restart the debounce timer."""
        self._pending = copy.deepcopy(dict(snapshot))
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._wait_and_save())

    async def _wait_and_save(self) -> None:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            return
        self._timer = None
        await self._run_save()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def cancel(self) -> None:
        """Stop the timer without saving. The pending snapshot is kept."""
        self._cancel_timer()

    async def flush(self) -> bool:
        """Save the pending snapshot now. Returns True when a save happened."""
        self._cancel_timer()
        return await self._run_save()

    # ── Saving ───────────────────────────────────────────────────────────────

    def _should_save(self, snapshot: Optional[dict[str, Any]]) -> bool:
        if not snapshot:
            return False
        if not str(snapshot.get("title") or "").strip():
            return False
        return snapshot != self._last_saved_snapshot

    async def _run_save(self) -> bool:
        async with self._save_lock:
            return await self._save_pending()

    async def _save_pending(self) -> bool:
        snapshot = self._pending
        if not self._should_save(snapshot):
            return False

        payload = {**snapshot, "status": "draft"}
        self.is_saving = True
        try:
            if self.draft_store is not None:
                await self.draft_store.save(self.draft_key, snapshot)
            result = await self._save(payload)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.warning("Autosave failed for draft %s: %s", self.draft_key, message)
            self.warning = f"Autosave failed: {message}"
            if any(marker in message.lower() for marker in _NOTIFY_MARKERS):
                self.notify = message
            return False
        finally:
            self.is_saving = False

        self._last_saved_snapshot = snapshot
        self.last_saved_at = datetime.now(UTC)
        self.save_count += 1
        self.warning = None
        self.notify = None

        # A first save of a new article returns its id; later drafts use it
        if isinstance(result, Mapping) and result.get("id") and self.draft_key == NEW_ARTICLE_KEY:
            self.draft_key = str(result["id"])
        return True

    # ── Restore ──────────────────────────────────────────────────────────────

    async def restore(self) -> Optional[StoredDraft]:
        """Return the mirrored draft for the current key, if any."""
        if self.draft_store is None:
            return None
        return await self.draft_store.load(self.draft_key)

    def last_saved_notice(self, now: Optional[datetime] = None) -> Optional[str]:
        """Human-readable "Last saved ..." line, or None before the first save."""
        if self.last_saved_at is None:
            return None
        return f"Last saved {time_since(self.last_saved_at, now)}"


def time_since(moment: datetime, now: Optional[datetime] = None) -> str:
    """Approximate distance from *moment* to *now*, with an "ago" suffix."""
    now = now or datetime.now(UTC)
    seconds = max(0, int((now - moment).total_seconds()))
    minutes = round(seconds / 60)

    if seconds < 30:
        return "less than a minute ago"
    if minutes < 2:
        return "1 minute ago"
    if minutes < 45:
        return f"{minutes} minutes ago"
    hours = round(minutes / 60)
    if hours < 24:
        return "about 1 hour ago" if hours == 1 else f"about {hours} hours ago"
    days = round(hours / 24)
    return "1 day ago" if days == 1 else f"{days} days ago"
