"""Cache: protocol, in-process and Redis backends, and cache key builders.

LocationHierarchy depends only on CacheProtocol; the backend is chosen at
startup (Redis when enabled, else MemoryCache). Key format is in keys.py.
"""

from approvals.infrastructure.cache.cache_protocol import CacheProtocol
from approvals.infrastructure.cache.keys import location_tree_key
from approvals.infrastructure.cache.memory_cache import MemoryCache
from approvals.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheProtocol",
    "CacheService",
    "MemoryCache",
    "location_tree_key",
]
