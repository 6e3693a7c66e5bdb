"""Unit tests for MemoryCache expiry and cache key builders."""

import pytest

from approvals.infrastructure.cache.keys import location_tree_key
from approvals.infrastructure.cache.memory_cache import MemoryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


async def test_get_returns_value_until_ttl_elapses() -> None:
    clock = FakeClock()
    cache = MemoryCache(clock=clock)
    await cache.set("k", ["a", "b"], ttl=10)
    assert await cache.get("k") == ["a", "b"]
    clock.now += 10
    assert await cache.get("k") is None
    assert len(cache) == 0


async def test_delete_reports_whether_key_existed() -> None:
    cache = MemoryCache()
    await cache.set("k", 1)
    assert await cache.delete("k") is True
    assert await cache.delete("k") is False
    assert await cache.get("k") is None


async def test_instances_do_not_share_state() -> None:
    first, second = MemoryCache(), MemoryCache()
    await first.set("k", 1)
    assert await second.get("k") is None


def test_location_tree_key_format() -> None:
    assert location_tree_key("abc") == "location:tree:descendants:abc"


def test_location_tree_key_rejects_separator() -> None:
    with pytest.raises(ValueError):
        location_tree_key("a:b")
