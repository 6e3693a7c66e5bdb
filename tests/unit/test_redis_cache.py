"""Unit tests for CacheService falling back to a miss when Redis fails."""

from redis.exceptions import ConnectionError as RedisConnectionError

from approvals.infrastructure.cache.redis_cache import CacheService


class BrokenRedis:
    """Client whose every command fails as if the server went away."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def get(self, key):
        self.calls.append("get")
        raise RedisConnectionError("connection refused")

    async def setex(self, key, ttl, value):
        self.calls.append("setex")
        raise RedisConnectionError("connection refused")

    async def delete(self, key):
        self.calls.append("delete")
        raise RedisConnectionError("connection refused")


class DictRedis:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value

    async def delete(self, key):
        self.data.pop(key, None)


async def test_redis_errors_degrade_to_miss() -> None:
    client = BrokenRedis()
    cache = CacheService(redis_client=client)
    assert cache.is_available()

    assert await cache.get("location:tree") is None
    assert await cache.set("location:tree", {"a": 1}) is False
    assert await cache.delete("location:tree") is False
    assert client.calls == ["get", "setex", "delete"]


async def test_values_round_trip_as_json() -> None:
    client = DictRedis()
    cache = CacheService(redis_client=client)
    assert await cache.set("k", {"ids": ["a", "b"]}, ttl=60) is True
    assert client.data["k"] == '{"ids": ["a", "b"]}'
    assert await cache.get("k") == {"ids": ["a", "b"]}
    assert await cache.delete("k") is True
    assert await cache.get("k") is None


async def test_without_client_every_call_is_a_miss() -> None:
    cache = CacheService()
    assert not cache.is_available()
    assert await cache.get("k") is None
    assert await cache.set("k", 1) is False
    assert await cache.delete("k") is False
