"""Abstract base class for key-value cache backends.

Defines the storage contract behind the tour cache: slug mappings, tour
lists and search-popularity counters.  Implementations may be in-process
(cachetools) or network-backed (Redis); the tour cache never knows which.

Implementations raise
:class:`~setlistscout.utils.errors.CacheUnavailableError` when the
backing store cannot be reached, and nothing else for connectivity
problems, so callers can degrade with a single ``except``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    All operations are async to allow for network-backed stores (e.g. Redis)
    without blocking the event loop.  Values are JSON-compatible Python
    objects (str, int, float, dict, list).
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the value stored under *key*.

        Parameters
        ----------
        key:
            The cache key to look up.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*, replacing any previous value.

        Parameters
        ----------
        key:
            The cache key.
        value:
            A JSON-compatible value.
        ttl:
            Time-to-live in seconds.  ``None`` means the entry does not
            expire automatically.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry stored under *key* (no-op if absent)."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""

    @abstractmethod
    async def ttl(self, key: str) -> int | None:
        """Return the remaining time-to-live of *key* in seconds.

        Returns
        -------
        int or None
            Seconds until expiry, ``-1`` for a key that never expires,
            or ``None`` if the key does not exist.
        """

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """Return every live key starting with *prefix*, sorted."""

    @abstractmethod
    async def increment_score(self, key: str, member: str, amount: float = 1.0) -> float:
        """Add *amount* to *member*'s score in the counter set *key*.

        Returns
        -------
        float
            The member's new score.
        """

    @abstractmethod
    async def top_scores(self, key: str, limit: int = 10) -> list[tuple[str, float]]:
        """Return up to *limit* ``(member, score)`` pairs, highest first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short backend name for logs and health output."""
