"""Unit tests for the slug and tour-list cache."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from setlistscout.interfaces.cache_provider import ICacheProvider
from setlistscout.models.tour import CachedTourSet, TourSummary
from setlistscout.providers.cache.memory_cache import MemoryCacheProvider
from setlistscout.services.tour_cache import (
    SEARCH_STATS_KEY,
    TourCache,
    is_valid_tour_name,
    slug_key,
    tours_key,
)
from setlistscout.utils.errors import CacheUnavailableError

HOUR = 60 * 60 * 1000
DAY = 24 * HOUR
T0 = 1_700_000_000_000


class _Clock:
    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def tour_cache(memory_cache: MemoryCacheProvider, clock: _Clock) -> TourCache:
    return TourCache(memory_cache, clock=clock)


def _entry(cached_at: int, last_checked: int, *names: str) -> CachedTourSet:
    return CachedTourSet(
        tours=[TourSummary(name=n, id=f"id-{n}") for n in names],
        last_updated="2023-11-14T22:13:20+00:00",
        last_checked=last_checked,
        cached_at=cached_at,
    )


def _failing_cache() -> MagicMock:
    cache = MagicMock(spec=ICacheProvider)
    error = CacheUnavailableError("connection refused", provider_name="redis")
    for method in ("get", "set", "delete", "ttl", "keys", "increment_score", "top_scores"):
        setattr(cache, method, AsyncMock(side_effect=error))
    return cache


# ======================================================================
# Keys and validity
# ======================================================================


class TestKeys:
    def test_slug_key_lowercases_name(self) -> None:
        assert slug_key("Taylor Swift") == "artist:slug:taylor swift"

    def test_slug_key_with_mbid(self) -> None:
        assert slug_key("Coldplay", "cc197bad") == "artist:slug:coldplay:cc197bad"

    def test_tours_key(self) -> None:
        assert tours_key("coldplay-3d6bde3") == "artist:tours:coldplay-3d6bde3"


class TestTourValidity:
    @pytest.mark.parametrize(
        "name",
        ["No Tour Info", "no tour", "Unknown Tour", "Miscellaneous Shows", "TBD", "N/A", "", "   "],
    )
    def test_invalid_names(self, name: str) -> None:
        assert is_valid_tour_name(name) is False

    @pytest.mark.parametrize("name", ["The Eras Tour", "Music of the Spheres", "Tour de Force"])
    def test_valid_names(self, name: str) -> None:
        assert is_valid_tour_name(name) is True

    def test_none(self) -> None:
        assert is_valid_tour_name(None) is False

    def test_show_count(self) -> None:
        assert TourCache.is_valid_tour(TourSummary(name="Eras", show_count=0)) is False
        assert TourCache.is_valid_tour(TourSummary(name="Eras", show_count=1)) is True
        assert TourCache.is_valid_tour(TourSummary(name="Eras")) is True
        assert TourCache.is_valid_tour(None) is False


# ======================================================================
# Slugs and tour lists
# ======================================================================


class TestSlugs:
    @pytest.mark.asyncio
    async def test_round_trip(self, tour_cache: TourCache) -> None:
        await tour_cache.cache_slug("Coldplay", "coldplay-3d6bde3")
        assert await tour_cache.get_slug("coldplay") == "coldplay-3d6bde3"

    @pytest.mark.asyncio
    async def test_mbid_is_part_of_key(self, tour_cache: TourCache) -> None:
        await tour_cache.cache_slug("Coldplay", "coldplay-3d6bde3", mbid="cc197bad")
        assert await tour_cache.get_slug("Coldplay") is None
        assert await tour_cache.get_slug("Coldplay", "cc197bad") == "coldplay-3d6bde3"


class TestTourLists:
    @pytest.mark.asyncio
    async def test_invalid_tours_filtered_on_write(
        self, tour_cache: TourCache, clock: _Clock
    ) -> None:
        tours = [
            TourSummary(name="The Eras Tour", show_count=149),
            TourSummary(name="No Tour Info", show_count=12),
            TourSummary(name="Unknown Tour"),
            TourSummary(name="Reputation Stadium Tour", show_count=0),
            TourSummary(name="Miscellaneous"),
            TourSummary(name="1989 World Tour"),
        ]
        await tour_cache.cache_tours("taylor-swift-3bd6bc5c", tours)
        entry = await tour_cache.get_tours("taylor-swift-3bd6bc5c")

        assert entry is not None
        assert [t.name for t in entry.tours] == ["The Eras Tour", "1989 World Tour"]
        assert entry.original_count == 6
        assert entry.filtered_count == 2
        assert entry.cached_at == entry.last_checked == clock.now

    @pytest.mark.asyncio
    async def test_rewrite_keeps_cached_at(self, tour_cache: TourCache, clock: _Clock) -> None:
        await tour_cache.cache_tours("slug", [TourSummary(name="First Tour")])
        clock.now += 3 * DAY
        await tour_cache.cache_tours("slug", [TourSummary(name="Second Tour")])

        entry = await tour_cache.get_tours("slug")
        assert entry is not None
        assert entry.cached_at == T0
        assert entry.last_checked == T0 + 3 * DAY
        assert [t.name for t in entry.tours] == ["Second Tour"]

    @pytest.mark.asyncio
    async def test_missing_entry(self, tour_cache: TourCache) -> None:
        assert await tour_cache.get_tours("nobody") is None

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_a_miss(
        self, tour_cache: TourCache, memory_cache: MemoryCacheProvider
    ) -> None:
        await memory_cache.set(tours_key("slug"), {"tours": "not a list"})
        assert await tour_cache.get_tours("slug") is None

    @pytest.mark.asyncio
    async def test_update_last_checked(self, tour_cache: TourCache, clock: _Clock) -> None:
        await tour_cache.cache_tours("slug", [TourSummary(name="Tour")])
        clock.now += 2 * HOUR
        await tour_cache.update_last_checked("slug")

        entry = await tour_cache.get_tours("slug")
        assert entry is not None
        assert entry.last_checked == T0 + 2 * HOUR
        assert entry.cached_at == T0

    @pytest.mark.asyncio
    async def test_update_last_checked_without_entry(
        self, tour_cache: TourCache, memory_cache: MemoryCacheProvider
    ) -> None:
        await tour_cache.update_last_checked("slug")
        assert await memory_cache.exists(tours_key("slug")) is False


# ======================================================================
# Staleness
# ======================================================================


class TestShouldCheckApi:
    def test_no_entry(self, tour_cache: TourCache) -> None:
        assert tour_cache.should_check_api(None) is True

    @pytest.mark.parametrize(
        "age_days, interval_hours",
        [(3, 6), (20, 24), (100, 168), (365, 720)],
    )
    def test_tier_boundaries(
        self, tour_cache: TourCache, clock: _Clock, age_days: int, interval_hours: int
    ) -> None:
        cached_at = clock.now - age_days * DAY

        just_before = _entry(cached_at, clock.now - interval_hours * HOUR + 1)
        at_interval = _entry(cached_at, clock.now - interval_hours * HOUR)

        assert tour_cache.should_check_api(just_before) is False
        assert tour_cache.should_check_api(at_interval) is True


class TestShouldUpdateTours:
    def test_no_entry(self, tour_cache: TourCache) -> None:
        assert tour_cache.should_update_tours("Any Tour", None) is True

    def test_checked_within_the_hour(self, tour_cache: TourCache, clock: _Clock) -> None:
        entry = _entry(clock.now - 10 * DAY, clock.now - 30 * 60 * 1000, "Old Tour")
        assert tour_cache.should_update_tours("Brand New Tour", entry) is False

    def test_known_by_name(self, tour_cache: TourCache, clock: _Clock) -> None:
        entry = _entry(clock.now - 10 * DAY, clock.now - 2 * HOUR, "Eras Tour")
        assert tour_cache.should_update_tours("Eras Tour", entry) is False

    def test_known_by_id(self, tour_cache: TourCache, clock: _Clock) -> None:
        entry = _entry(clock.now - 10 * DAY, clock.now - 2 * HOUR, "Eras Tour")
        assert tour_cache.should_update_tours("id-Eras Tour", entry) is False

    def test_new_tour(self, tour_cache: TourCache, clock: _Clock) -> None:
        entry = _entry(clock.now - 10 * DAY, clock.now - 2 * HOUR, "Eras Tour")
        assert tour_cache.should_update_tours("Brand New Tour", entry) is True


class TestMergeTours:
    def test_known_tour_takes_larger_count(self) -> None:
        cached = [TourSummary(name="A", id="1", show_count=10), TourSummary(name="B", id="2")]
        merged = TourCache.merge_tours(cached, TourSummary(name="A", id="1", show_count=14))
        assert [(t.id, t.show_count) for t in merged] == [("1", 14), ("2", None)]

    def test_known_tour_never_shrinks(self) -> None:
        cached = [TourSummary(name="A", id="1", show_count=10)]
        merged = TourCache.merge_tours(cached, TourSummary(name="A", id="1", show_count=3))
        assert merged[0].show_count == 10

    def test_unknown_tour_prepended(self) -> None:
        cached = [TourSummary(name="A", id="1")]
        merged = TourCache.merge_tours(cached, TourSummary(name="New", id="9"))
        assert [t.id for t in merged] == ["9", "1"]
        assert len(cached) == 1


# ======================================================================
# Popularity and administration
# ======================================================================


class TestSearchStats:
    @pytest.mark.asyncio
    async def test_popular_artists_ranked(self, tour_cache: TourCache) -> None:
        for name in ("Coldplay", "coldplay", "Muse", "COLDPLAY", "Muse", "Bon Iver"):
            await tour_cache.track_artist_search(name)

        assert await tour_cache.popular_artists(limit=2) == ["coldplay", "muse"]

    @pytest.mark.asyncio
    async def test_no_stats(self, tour_cache: TourCache) -> None:
        assert await tour_cache.popular_artists() == []


class TestAdministration:
    @pytest.mark.asyncio
    async def test_inspect(self, tour_cache: TourCache) -> None:
        await tour_cache.cache_slug("Coldplay", "coldplay-3d6bde3")
        await tour_cache.cache_tours("coldplay-3d6bde3", [TourSummary(name="Spheres Tour")])

        info = await tour_cache.inspect("Coldplay")

        assert info["slug"] == "coldplay-3d6bde3"
        assert info["tours_key"] == "artist:tours:coldplay-3d6bde3"
        assert info["tours"].tours[0].name == "Spheres Tour"
        assert info["ttl"] == -1

    @pytest.mark.asyncio
    async def test_inspect_unknown_artist(self, tour_cache: TourCache) -> None:
        info = await tour_cache.inspect("Nobody")
        assert info["slug"] is None
        assert info["tours"] is None
        assert info["ttl"] is None

    @pytest.mark.asyncio
    async def test_list_keys_and_clear(
        self, tour_cache: TourCache, memory_cache: MemoryCacheProvider
    ) -> None:
        await tour_cache.cache_slug("Muse", "muse-13d6bd79")
        await tour_cache.cache_tours("muse-13d6bd79", [TourSummary(name="Will of the People")])
        await tour_cache.track_artist_search("Muse")

        assert await tour_cache.list_keys() == [
            "artist:slug:muse",
            "artist:tours:muse-13d6bd79",
        ]
        assert await tour_cache.clear("artist:") == 2
        assert await tour_cache.list_keys() == []
        assert await memory_cache.exists(SEARCH_STATS_KEY) is True


# ======================================================================
# Store outages
# ======================================================================


class TestCacheOutage:
    @pytest.mark.asyncio
    async def test_reads_degrade_to_miss(self, clock: _Clock) -> None:
        tour_cache = TourCache(_failing_cache(), clock=clock)
        assert await tour_cache.get_slug("Coldplay") is None
        assert await tour_cache.get_tours("coldplay") is None
        assert await tour_cache.popular_artists() == []

    @pytest.mark.asyncio
    async def test_writes_are_skipped(self, clock: _Clock) -> None:
        tour_cache = TourCache(_failing_cache(), clock=clock)
        await tour_cache.cache_slug("Coldplay", "coldplay-3d6bde3")
        await tour_cache.track_artist_search("Coldplay")
        assert await tour_cache.cache_tours("coldplay", [TourSummary(name="Tour")]) is None

    @pytest.mark.asyncio
    async def test_admin_methods_propagate(self, clock: _Clock) -> None:
        tour_cache = TourCache(_failing_cache(), clock=clock)
        with pytest.raises(CacheUnavailableError):
            await tour_cache.inspect("Coldplay")
        with pytest.raises(CacheUnavailableError):
            await tour_cache.clear()
