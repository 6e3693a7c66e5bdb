"""In-process TTL cache used when Redis is disabled and in tests."""

import asyncio
import time
from dataclasses import dataclass
from typing import Any

from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Entry:
    value: Any
    expires_at: float


class MemoryCache:
    """Dict-backed cache with per-key expiry. Scoped to one process.

    Instances are independent; tests create one per test so no state leaks
    between runs.
    """

    def __init__(self, clock: Any = time.monotonic) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def is_available(self) -> bool:
        return True

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                logger.debug("Cache EXPIRED: %s", key)
                return None
            return entry.value

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        async with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)
        return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._entries)
