"""Tests for the in-memory cache."""

from datetime import UTC, datetime, timedelta

from calorie_coach.services.cache import InMemoryCache


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = _Clock()
    cache = InMemoryCache(clock=clock)

    cache.set("key", "value", ttl_seconds=60)
    assert cache.get("key") == "value"

    clock.now += timedelta(seconds=61)
    assert cache.get("key") is None
    assert len(cache) == 0


def test_oldest_entries_are_evicted() -> None:
    cache = InMemoryCache(max_entries=2)

    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)
    cache.set("c", 3, ttl_seconds=60)

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3
