"""
Unit tests for debounced autosave and the local draft mirror.
"""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from adapters.storage.draft_store import DraftStore
from services.autosave import AutosaveScheduler, time_since



class RecordingSave:
    """Save callable that records payloads and returns a fixed id."""

    def __init__(self, result=None, error: Exception | None = None, latency: float = 0):
        self.payloads = []
        self.latency = latency
        self.result = result if result is not None else {"id": "article-1"}
        self.error = error

    async def __call__(self, payload):
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.error is not None:
            raise self.error
        self.payloads.append(payload)
        return self.result


@pytest.fixture
def store(tmp_path):
    return DraftStore(tmp_path / "drafts")


class TestDebounce:
    async def test_burst_of_edits_saves_once(self):
        save = RecordingSave()
        scheduler = AutosaveScheduler(save, delay=0.05)

        scheduler.schedule({"title": "Draft", "content": []})
        scheduler.schedule({"title": "Draft v2", "content": []})
        scheduler.schedule({"title": "Draft v3", "content": []})
        assert scheduler.pending
        await asyncio.sleep(0.15)

        assert len(save.payloads) == 1
        assert save.payloads[0]["title"] == "Draft v3"
        assert save.payloads[0]["status"] == "draft"
        assert not scheduler.pending

    async def test_cancel_keeps_snapshot_for_flush(self):
        save = RecordingSave()
        scheduler = AutosaveScheduler(save, delay=10)

        scheduler.schedule({"title": "Later"})
        scheduler.cancel()
        assert save.payloads == []

        assert await scheduler.flush() is True
        assert save.payloads[0]["title"] == "Later"


class TestFlush:
    async def test_untitled_is_not_saved(self):
        save = RecordingSave()
        scheduler = AutosaveScheduler(save, delay=10)
        scheduler.schedule({"title": "   ", "content": [{"type": "paragraph"}]})

        assert await scheduler.flush() is False
        assert save.payloads == []

    async def test_unchanged_snapshot_is_not_saved_twice(self):
        save = RecordingSave()
        scheduler = AutosaveScheduler(save, delay=10)

        scheduler.schedule({"title": "Same"})
        assert await scheduler.flush() is True
        scheduler.schedule({"title": "Same"})
        assert await scheduler.flush() is False
        assert scheduler.save_count == 1

    async def test_flush_waits_for_save_in_flight(self):
        save = RecordingSave(latency=0.2)
        scheduler = AutosaveScheduler(save, delay=0.01)

        scheduler.schedule({"title": "Starship", "content": []})
        await asyncio.sleep(0.05)
        assert scheduler.is_saving

        assert await scheduler.flush() is False
        assert len(save.payloads) == 1
        assert scheduler.save_count == 1

    async def test_edit_during_save_is_saved_after_it(self):
        save = RecordingSave(latency=0.1)
        scheduler = AutosaveScheduler(save, delay=0.01)

        scheduler.schedule({"title": "Starship", "content": []})
        await asyncio.sleep(0.03)
        scheduler.schedule({"title": "Starship flight 9", "content": []})

        assert await scheduler.flush() is True
        assert [p["title"] for p in save.payloads] == ["Starship", "Starship flight 9"]

    async def test_snapshot_is_copied(self):
        save = RecordingSave()
        scheduler = AutosaveScheduler(save, delay=10)
        snapshot = {"title": "Copy", "content": [{"type": "paragraph", "content": "a"}]}

        scheduler.schedule(snapshot)
        snapshot["content"][0]["content"] = "mutated"
        await scheduler.flush()

        assert save.payloads[0]["content"][0]["content"] == "a"

    async def test_first_save_adopts_article_id(self, store):
        save = RecordingSave(result={"id": "abc-123"})
        scheduler = AutosaveScheduler(save, delay=10, draft_store=store)
        assert scheduler.draft_key == "new"

        scheduler.schedule({"title": "Fresh"})
        await scheduler.flush()

        assert scheduler.draft_key == "abc-123"
        assert scheduler.last_saved_at is not None

    async def test_failure_sets_warning(self):
        scheduler = AutosaveScheduler(RecordingSave(error=RuntimeError("Slug already exists")), delay=10)
        scheduler.schedule({"title": "Broken"})

        assert await scheduler.flush() is False
        assert scheduler.warning == "Autosave failed: Slug already exists"
        assert scheduler.notify is None
        assert scheduler.is_saving is False

    async def test_network_failure_notifies(self):
        scheduler = AutosaveScheduler(RecordingSave(error=ConnectionError("Network unreachable")), delay=10)
        scheduler.schedule({"title": "Offline"})

        await scheduler.flush()
        assert scheduler.notify == "Network unreachable"

    async def test_success_clears_previous_warning(self):
        save = RecordingSave(error=TimeoutError("timeout"))
        scheduler = AutosaveScheduler(save, delay=10)
        scheduler.schedule({"title": "Retry"})
        await scheduler.flush()
        assert scheduler.warning

        save.error = None
        assert await scheduler.flush() is True
        assert scheduler.warning is None
        assert scheduler.notify is None


class TestDraftMirror:
    async def test_snapshot_mirrored_before_save(self, store):
        scheduler = AutosaveScheduler(RecordingSave(error=RuntimeError("offline")), delay=10, draft_store=store)
        scheduler.schedule({"title": "Keep me", "content": []})
        await scheduler.flush()

        draft = await scheduler.restore()
        assert draft is not None
        assert draft.snapshot == {"title": "Keep me", "content": []}

    async def test_restore_without_store(self):
        scheduler = AutosaveScheduler(RecordingSave(), delay=10)
        assert await scheduler.restore() is None

    async def test_corrupt_draft_is_ignored(self, store, tmp_path):
        await store.save("a1", {"title": "ok"})
        (tmp_path / "drafts" / "draft_a1.json").write_text("{broken", encoding="utf-8")

        assert await store.load("a1") is None

    async def test_discard(self, store):
        await store.save("a2", {"title": "bye"})
        assert await store.discard("a2") is True
        assert await store.discard("a2") is False
        assert await store.load("a2") is None

    async def test_unsafe_keys_stay_in_base_path(self, store, tmp_path):
        await store.save("../../etc/passwd", {"title": "x"})
        files = [p.name for p in (tmp_path / "drafts").iterdir()]
        assert files == ["draft_" + "_" * 6 + "etc_passwd.json"]


class TestLastSavedNotice:
    def test_before_first_save(self):
        assert AutosaveScheduler(RecordingSave(), delay=1).last_saved_notice() is None

    def test_notice_text(self):
        scheduler = AutosaveScheduler(RecordingSave(), delay=1)
        now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        scheduler.last_saved_at = now - timedelta(minutes=5)
        assert scheduler.last_saved_notice(now) == "Last saved 5 minutes ago"

    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(seconds=10), "less than a minute ago"),
            (timedelta(seconds=50), "1 minute ago"),
            (timedelta(minutes=44), "44 minutes ago"),
            (timedelta(minutes=50), "about 1 hour ago"),
            (timedelta(hours=5), "about 5 hours ago"),
            (timedelta(hours=30), "1 day ago"),
            (timedelta(days=3), "3 days ago"),
        ],
    )
    def test_time_since(self, delta, expected):
        now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        assert time_since(now - delta, now) == expected
