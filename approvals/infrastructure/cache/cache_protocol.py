"""Cache protocol injected into services that keep read-through caches (DIP)."""

from typing import Any, Protocol


class CacheProtocol(Protocol):
    """Protocol for TTL-bounded cache backends (Redis, in-process)."""

    def is_available(self) -> bool:
        """Return True if the backend is usable."""
        ...

    async def get(self, key: str) -> Any:
        """Return cached value or None."""
        ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store a JSON-serializable value with TTL in seconds."""
        ...

    async def delete(self, key: str) -> bool:
        """Invalidate key."""
        ...
