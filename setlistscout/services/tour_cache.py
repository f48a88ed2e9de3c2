"""Persistent cache of catalog slugs and complete tour lists.

Two kinds of entries live in the backing :class:`ICacheProvider`, both
written without a TTL:

- ``artist:slug:<lower name>[:<mbid>]`` -> the artist's setlist.fm slug
- ``artist:tours:<slug>`` -> a :class:`CachedTourSet` JSON blob

Revalidation is tiered by how long an entry has existed: young entries
are checked against the live API every few hours, old ones monthly.

Store outages never break a search.  The lookup/update methods treat
:class:`CacheUnavailableError` as a miss and log it; only the
administrative methods (``inspect``, ``clear``, ``list_keys``) let it
propagate so operators see the failure.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError

from setlistscout.interfaces.cache_provider import ICacheProvider
from setlistscout.models.tour import CachedTourSet, TourSummary
from setlistscout.utils.errors import CacheUnavailableError
from setlistscout.utils.logging import get_logger

SLUG_PREFIX = "artist:slug:"
TOURS_PREFIX = "artist:tours:"
SEARCH_STATS_KEY = "stats:artist_searches"

_HOUR_MS = 60 * 60 * 1000
_DAY_MS = 24 * _HOUR_MS

# Minimum gap between live checks for a new tour.
MIN_CHECK_INTERVAL_MS = _HOUR_MS

# (entry age below N days, re-check after M hours); the last tier is the fallback.
CHECK_TIERS: tuple[tuple[float, float], ...] = (
    (7, 6),
    (30, 24),
    (180, 168),
)
FALLBACK_CHECK_HOURS = 720

INVALID_TOUR_NAMES: frozenset[str] = frozenset(
    {
        "no tour info",
        "no tour data",
        "no tour",
        "no tours",
        "",
        "unknown",
        "miscellaneous",
        "various",
        "other",
        "untitled",
        "n/a",
        "tbd",
        "null",
    }
)

INVALID_TOUR_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^no\s+tour",
        r"^unknown",
        r"^misc",
        r"^various",
        r"^other",
        r"^n/a$",
        r"^tbd$",
        r"^null$",
        r"^\s*$",
    )
)


def slug_key(artist_name: str, mbid: str | None = None) -> str:
    key = f"{SLUG_PREFIX}{artist_name.lower()}"
    return f"{key}:{mbid}" if mbid else key


def tours_key(slug: str) -> str:
    return f"{TOURS_PREFIX}{slug}"


def is_valid_tour_name(name: str | None) -> bool:
    """True unless *name* is empty or a known "no tour" label."""
    if not name:
        return False
    if name.lower().strip() in INVALID_TOUR_NAMES:
        return False
    return not any(pattern.search(name) for pattern in INVALID_TOUR_PATTERNS)


def now_ms() -> int:
    return int(time.time() * 1000)


class TourCache:
    """Slug and tour-list cache on top of an :class:`ICacheProvider`.

    Parameters
    ----------
    cache:
        Backing key-value store (Redis in production, memory in dev/tests).
    clock:
        Returns the current time in epoch milliseconds; injectable so
        staleness rules can be tested without sleeping.
    """

    def __init__(self, cache: ICacheProvider, clock: Callable[[], int] = now_ms) -> None:
        self._cache = cache
        self._clock = clock
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Slugs
    # ------------------------------------------------------------------

    async def cache_slug(self, artist_name: str, slug: str, mbid: str | None = None) -> None:
        key = slug_key(artist_name, mbid)
        try:
            await self._cache.set(key, slug)
        except CacheUnavailableError as exc:
            self._logger.warning("slug_cache_write_skipped", key=key, error=str(exc))

    async def get_slug(self, artist_name: str, mbid: str | None = None) -> str | None:
        key = slug_key(artist_name, mbid)
        try:
            value = await self._cache.get(key)
        except CacheUnavailableError as exc:
            self._logger.warning("slug_cache_read_failed", key=key, error=str(exc))
            return None
        return str(value) if value else None

    # ------------------------------------------------------------------
    # Tours
    # ------------------------------------------------------------------

    async def cache_tours(self, slug: str, tours: Iterable[TourSummary]) -> CachedTourSet | None:
        """Filter *tours* and store them as the complete list for *slug*.

        ``cached_at`` is carried over from an existing entry so tier
        calculations keep measuring from the first write.

        Returns
        -------
        CachedTourSet or None
            The stored entry, or ``None`` when the store was unavailable.
        """
        offered = list(tours)
        valid = [tour for tour in offered if self.is_valid_tour(tour)]
        now = self._clock()
        existing = await self.get_tours(slug)

        entry = CachedTourSet(
            tours=valid,
            last_updated=datetime.fromtimestamp(now / 1000, tz=timezone.utc).isoformat(),
            last_checked=now,
            cached_at=existing.cached_at if existing else now,
            original_count=len(offered),
            filtered_count=len(valid),
        )

        key = tours_key(slug)
        try:
            await self._cache.set(key, entry.model_dump(mode="json", by_alias=True))
        except CacheUnavailableError as exc:
            self._logger.warning("tour_cache_write_skipped", key=key, error=str(exc))
            return None

        if len(offered) != len(valid):
            self._logger.info(
                "invalid_tours_filtered", slug=slug, dropped=len(offered) - len(valid)
            )
        self._logger.info("tours_cached", slug=slug, tours=len(valid))
        return entry

    async def get_tours(self, slug: str) -> CachedTourSet | None:
        key = tours_key(slug)
        try:
            raw = await self._cache.get(key)
        except CacheUnavailableError as exc:
            self._logger.warning("tour_cache_read_failed", key=key, error=str(exc))
            return None
        return self._parse_entry(key, raw)

    async def update_last_checked(self, slug: str) -> None:
        """Bump ``last_checked`` on an existing entry; missing entries are left alone."""
        entry = await self.get_tours(slug)
        if entry is None:
            return
        updated = entry.model_copy(update={"last_checked": self._clock()})
        key = tours_key(slug)
        try:
            await self._cache.set(key, updated.model_dump(mode="json", by_alias=True))
        except CacheUnavailableError as exc:
            self._logger.warning("tour_cache_write_skipped", key=key, error=str(exc))

    # ------------------------------------------------------------------
    # Staleness
    # ------------------------------------------------------------------

    def should_check_api(self, entry: CachedTourSet | None) -> bool:
        """Whether enough time has passed to re-check the live API for *entry*."""
        if entry is None:
            return True

        now = self._clock()
        hours_since_check = (now - entry.last_checked) / _HOUR_MS
        days_since_cached = (now - entry.cached_at) / _DAY_MS

        for max_age_days, interval_hours in CHECK_TIERS:
            if days_since_cached < max_age_days:
                return hours_since_check >= interval_hours
        return hours_since_check >= FALLBACK_CHECK_HOURS

    def should_update_tours(self, current_tour: str, entry: CachedTourSet | None) -> bool:
        """Whether *current_tour* (from the live API) is missing from *entry*.

        Never re-fetches more than once per hour for the same entry.
        """
        if entry is None:
            return True

        last = entry.last_checked or entry.cached_at
        if self._clock() - last < MIN_CHECK_INTERVAL_MS:
            return False

        known = any(tour.name == current_tour or tour.id == current_tour for tour in entry.tours)
        return not known

    # ------------------------------------------------------------------
    # Tour helpers
    # ------------------------------------------------------------------

    @staticmethod
    def is_valid_tour(tour: TourSummary | None) -> bool:
        if tour is None or not is_valid_tour_name(tour.name):
            return False
        return tour.show_count is None or tour.show_count >= 1

    @staticmethod
    def merge_tours(cached: list[TourSummary], new_tour: TourSummary) -> list[TourSummary]:
        """Merge *new_tour* into *cached* (matched by id).

        A known tour keeps its position and takes the larger show count;
        an unknown one is prepended as the most recent.
        """
        merged = list(cached)
        for index, tour in enumerate(merged):
            if tour.id == new_tour.id:
                if (new_tour.show_count or 0) > (tour.show_count or 0):
                    merged[index] = tour.model_copy(update={"show_count": new_tour.show_count})
                return merged
        merged.insert(0, new_tour)
        return merged

    # ------------------------------------------------------------------
    # Popularity stats
    # ------------------------------------------------------------------

    async def track_artist_search(self, artist_name: str) -> None:
        try:
            await self._cache.increment_score(SEARCH_STATS_KEY, artist_name.lower())
        except CacheUnavailableError as exc:
            self._logger.warning("search_stats_skipped", artist=artist_name, error=str(exc))

    async def popular_artists(self, limit: int = 20) -> list[str]:
        try:
            scores = await self._cache.top_scores(SEARCH_STATS_KEY, limit)
        except CacheUnavailableError as exc:
            self._logger.warning("search_stats_unavailable", error=str(exc))
            return []
        return [member for member, _ in scores]

    # ------------------------------------------------------------------
    # Administration (errors propagate)
    # ------------------------------------------------------------------

    async def inspect(self, artist_name: str, mbid: str | None = None) -> dict[str, Any]:
        """Everything cached for one artist, for operators.

        Returns a dict with ``slug_key``, ``slug``, ``tours_key``,
        ``tours`` (a :class:`CachedTourSet` or ``None``) and ``ttl``
        (``-1`` for entries without expiry, ``None`` when absent).
        """
        s_key = slug_key(artist_name, mbid)
        slug = await self._cache.get(s_key)
        result: dict[str, Any] = {
            "slug_key": s_key,
            "slug": slug,
            "tours_key": None,
            "tours": None,
            "ttl": None,
        }
        if not slug:
            return result

        t_key = tours_key(str(slug))
        result["tours_key"] = t_key
        result["tours"] = self._parse_entry(t_key, await self._cache.get(t_key))
        result["ttl"] = await self._cache.ttl(t_key)
        return result

    async def list_keys(self, prefix: str = "artist:") -> list[str]:
        return sorted(await self._cache.keys(prefix))

    async def clear(self, prefix: str = "artist:") -> int:
        """Delete every key under *prefix*; returns the number deleted."""
        keys = await self._cache.keys(prefix)
        for key in keys:
            await self._cache.delete(key)
        self._logger.info("cache_cleared", prefix=prefix, deleted=len(keys))
        return len(keys)

    # ------------------------------------------------------------------

    def _parse_entry(self, key: str, raw: Any) -> CachedTourSet | None:
        if not raw:
            return None
        try:
            return CachedTourSet.model_validate(raw)
        except ValidationError as exc:
            self._logger.warning("tour_cache_entry_invalid", key=key, error=str(exc))
            return None
