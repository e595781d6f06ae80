"""Cache providers.

MemoryCacheProvider is a dict-based TTL cache - fast but not shared across
processes.  For multi-worker deployments, swap in a Redis adapter
implementing ICacheProvider without changing any business logic.
"""

from scene.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
