"""
Unit tests for the upstream response cache.
"""

import asyncio

import pytest

from services.api_cache import ApiCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ApiCache(ttl_seconds=3600, clock=clock)


class TestApiCache:
    def test_entry_expires_after_ttl(self, cache, clock):
        cache.set("/api/spacex/rockets", [{"name": "Falcon 9"}])
        clock.now += 3599
        assert cache.get("/api/spacex/rockets") == [{"name": "Falcon 9"}]

        clock.now += 1
        assert cache.get("/api/spacex/rockets") is None
        assert len(cache) == 0

    def test_per_entry_ttl(self, cache, clock):
        cache.set("/api/iss/location", {"lat": 1}, ttl=60)
        clock.now += 61
        assert cache.get("/api/iss/location") is None

    def test_invalidate(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.get("a") is None
        assert cache.get("b") == 2

        cache.invalidate()
        assert len(cache) == 0

    def test_expired_entries_swept_on_set(self, cache, clock):
        cache.set("/api/nasa/apod?date=2024-01-01", {"title": "M31"})
        cache.set("/api/nasa/apod?date=2024-01-02", {"title": "M42"})
        clock.now += 3600

        cache.set("/api/nasa/apod?date=2024-01-03", {"title": "M45"})
        assert len(cache) == 1


@pytest.mark.asyncio
class TestGetOrFetch:
    async def test_fetches_once(self, cache):
        calls = []

        async def fetch():
            calls.append(1)
            return {"launches": 3}

        assert await cache.get_or_fetch("k", fetch) == {"launches": 3}
        assert await cache.get_or_fetch("k", fetch) == {"launches": 3}
        assert len(calls) == 1

    async def test_concurrent_misses_share_one_call(self, cache):
        calls = []

        async def slow_fetch():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "value"

        results = await asyncio.gather(*(cache.get_or_fetch("k", slow_fetch) for _ in range(5)))
        assert results == ["value"] * 5
        assert len(calls) == 1

    async def test_errors_are_not_cached(self, cache):
        async def failing():
            raise RuntimeError("upstream down")

        with pytest.raises(RuntimeError):
            await cache.get_or_fetch("k", failing)
        assert cache.get("k") is None

        async def ok():
            return "recovered"

        assert await cache.get_or_fetch("k", ok) == "recovered"

    async def test_locks_released_after_fetch(self, cache):
        async def fetch():
            return "value"

        async def failing():
            raise RuntimeError("upstream down")

        await cache.get_or_fetch("/api/nasa/neo?start_date=2024-01-01&end_date=", fetch)
        with pytest.raises(RuntimeError):
            await cache.get_or_fetch("/api/nasa/neo?start_date=2024-01-02&end_date=", failing)
        assert cache._locks == {}
