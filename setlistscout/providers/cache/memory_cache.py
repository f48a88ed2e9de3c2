"""In-memory cache provider using cachetools.TLRUCache.

Suitable for development, tests and single-process deployments.  Unlike a
plain ``TTLCache`` every entry carries its own expiry, so ``set(..., ttl)``
and ``ttl()`` behave the same as on the Redis backend.  Entries written
without a TTL never expire (they can still be evicted when ``max_size``
is reached).
"""

from __future__ import annotations

import math
import time
from typing import Any, Callable

import structlog
from cachetools import TLRUCache

from setlistscout.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


def _time_to_use(_key: str, item: tuple[Any, float | None], _now: float) -> float:
    """TLRUCache hook: an item lives until its stored absolute expiry."""
    expires_at = item[1]
    return expires_at if expires_at is not None else math.inf


class MemoryCacheProvider(ICacheProvider):
    """In-process key-value cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    timer:
        Monotonic clock in seconds; injectable for tests.
    """

    def __init__(self, max_size: int = 5000, timer: Callable[[], float] = time.monotonic) -> None:
        self._timer = timer
        self._cache: TLRUCache[str, tuple[Any, float | None]] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        item = self._cache.get(key)
        if item is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return item[0]

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        expires_at = self._timer() + ttl if ttl is not None else None
        self._cache[key] = (value, expires_at)
        logger.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def exists(self, key: str) -> bool:
        return key in self._cache

    async def ttl(self, key: str) -> int | None:
        item = self._cache.get(key)
        if item is None:
            return None
        expires_at = item[1]
        if expires_at is None:
            return -1
        return max(0, int(expires_at - self._timer()))

    async def keys(self, prefix: str = "") -> list[str]:
        self._cache.expire()
        return sorted(k for k in list(self._cache.keys()) if k.startswith(prefix))

    async def increment_score(self, key: str, member: str, amount: float = 1.0) -> float:
        item = self._cache.get(key)
        scores: dict[str, float] = dict(item[0]) if item is not None else {}
        scores[member] = scores.get(member, 0.0) + amount
        self._cache[key] = (scores, None)
        return scores[member]

    async def top_scores(self, key: str, limit: int = 10) -> list[tuple[str, float]]:
        item = self._cache.get(key)
        if item is None:
            return []
        ranked = sorted(item[0].items(), key=lambda pair: pair[1], reverse=True)
        return ranked[:limit]

    def get_provider_name(self) -> str:
        return "memory"
