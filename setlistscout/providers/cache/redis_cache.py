"""Redis cache provider using ``redis.asyncio``.

Production backend for the tour cache.  Values are stored as JSON strings
so entries stay readable from ``redis-cli`` and are replaced atomically by
a single ``SET``.  Popularity counters use a sorted set.

Every Redis failure is re-raised as
:class:`~setlistscout.utils.errors.CacheUnavailableError`.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from setlistscout.interfaces.cache_provider import ICacheProvider
from setlistscout.utils.errors import CacheUnavailableError
from setlistscout.utils.logging import get_logger

_SCAN_BATCH = 500


class RedisCacheProvider(ICacheProvider):
    """Key-value cache backed by a Redis server.

    Parameters
    ----------
    client:
        A ``redis.asyncio.Redis`` client created with
        ``decode_responses=True``.  Build one with :meth:`from_url`.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisCacheProvider:
        """Create a provider from a ``redis://`` connection string."""
        client = aioredis.from_url(url, decode_responses=True, **kwargs)
        return cls(client)

    async def close(self) -> None:
        await self._client.aclose()

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as exc:
            raise self._unavailable("ping", exc) from exc

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as exc:
            raise self._unavailable("get", exc, key=key) from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Plain strings written by other tools (e.g. a bare slug).
            return raw

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        payload = json.dumps(value)
        try:
            if ttl is not None:
                await self._client.set(key, payload, ex=ttl)
            else:
                await self._client.set(key, payload)
        except (RedisError, OSError) as exc:
            raise self._unavailable("set", exc, key=key) from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except (RedisError, OSError) as exc:
            raise self._unavailable("delete", exc, key=key) from exc

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(key))
        except (RedisError, OSError) as exc:
            raise self._unavailable("exists", exc, key=key) from exc

    async def ttl(self, key: str) -> int | None:
        try:
            remaining = await self._client.ttl(key)
        except (RedisError, OSError) as exc:
            raise self._unavailable("ttl", exc, key=key) from exc
        # Redis: -2 = missing key, -1 = no expiry.
        if remaining == -2:
            return None
        return int(remaining)

    async def keys(self, prefix: str = "") -> list[str]:
        try:
            pattern = f"{prefix}*"
            found = [key async for key in self._client.scan_iter(match=pattern, count=_SCAN_BATCH)]
        except (RedisError, OSError) as exc:
            raise self._unavailable("scan", exc, prefix=prefix) from exc
        return sorted(found)

    async def increment_score(self, key: str, member: str, amount: float = 1.0) -> float:
        try:
            return float(await self._client.zincrby(key, amount, member))
        except (RedisError, OSError) as exc:
            raise self._unavailable("zincrby", exc, key=key) from exc

    async def top_scores(self, key: str, limit: int = 10) -> list[tuple[str, float]]:
        try:
            ranked = await self._client.zrevrange(key, 0, limit - 1, withscores=True)
        except (RedisError, OSError) as exc:
            raise self._unavailable("zrevrange", exc, key=key) from exc
        return [(member, float(score)) for member, score in ranked]

    def get_provider_name(self) -> str:
        return "redis"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _unavailable(self, operation: str, exc: Exception, **context: Any) -> CacheUnavailableError:
        self._logger.warning(
            "redis_operation_failed", operation=operation, error=str(exc), **context
        )
        return CacheUnavailableError(
            f"Redis {operation} failed: {exc}",
            provider_name=self.get_provider_name(),
        )
