"""Cache providers.

Two implementations of ICacheProvider back the artist tour cache:

    1. RedisCacheProvider   shared across workers and restarts; selected when
       REDIS_URL is set.
    2. MemoryCacheProvider  per-process TLRU cache (cachetools) with per-entry
       TTLs; used in development and tests.

Both raise CacheUnavailableError on backend failure so TourCache can degrade
to a cache miss without knowing which backend is in use.
"""

from setlistscout.providers.cache.memory_cache import MemoryCacheProvider
from setlistscout.providers.cache.redis_cache import RedisCacheProvider

__all__ = ["MemoryCacheProvider", "RedisCacheProvider"]
