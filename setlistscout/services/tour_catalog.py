"""Tour catalog: complete tour lists served from the cache.

# ─── LOOKUP FLOW ──────────────────────────────────────────────────────
#
#   track search ─→ slug (cache, else page-1 search)
#        │                 └─ none → "Artist not found on setlist.fm"
#        ▼
#   cached entry? ──yes──→ due for a check? ──no──→ return cached
#        │                      │ yes
#        │                      ▼
#        │               page 1 → choose_tour → known tour? → return cached
#        │                      │ new tour         (API failure → cached)
#        ▼                      ▼
#   full tour list (scraper service, else a full history pass) → cache
# ──────────────────────────────────────────────────────────────────────

Only complete tour lists are ever cached.  The refresh that runs after a
setlist search is allowed to *revalidate* existing entries but never to
create one from the single tour that search saw.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from setlistscout.interfaces.setlist_provider import ArtistQuery
from setlistscout.interfaces.tour_source_provider import ITourSourceProvider
from setlistscout.models.tour import ArtistToursResult, CachedTourSet, TourSummary
from setlistscout.services.setlist_paginator import SetlistPaginator
from setlistscout.services.slug_resolver import SlugResolver
from setlistscout.services.tour_cache import TourCache, is_valid_tour_name, now_ms
from setlistscout.services.tour_extractor import TourExtractor
from setlistscout.services.tour_selector import choose_tour, group_shows_by_tour
from setlistscout.utils.errors import SetlistScoutError
from setlistscout.utils.logging import get_logger

ARTIST_NOT_FOUND_MESSAGE = "Artist not found on setlist.fm"


class TourCatalogService:
    """Serves and maintains cached complete tour lists.

    Parameters
    ----------
    tour_cache:
        Slug and tour-list cache.
    paginator:
        Paginator on the interactive fetcher; used for page-1 checks.
    slug_resolver:
        Resolves uncached slugs.
    tour_source:
        Tour-scraper provider.  Used when it reports itself available.
    tour_extractor:
        Full history pass used when the scraper is unavailable.
    clock:
        Epoch-millisecond clock, shared with the cache in tests.
    """

    def __init__(
        self,
        tour_cache: TourCache,
        paginator: SetlistPaginator,
        slug_resolver: SlugResolver,
        tour_source: ITourSourceProvider | None = None,
        tour_extractor: TourExtractor | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._cache = tour_cache
        self._paginator = paginator
        self._slugs = slug_resolver
        self._source = tour_source
        self._extractor = tour_extractor
        self._clock = clock
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get_artist_tours(
        self, artist_name: str, mbid: str | None = None
    ) -> ArtistToursResult:
        """Return the complete tour list for *artist_name*.

        Raises
        ------
        SetlistScoutError
            Only when no cached list exists and a fresh one cannot be built.
        """
        await self._cache.track_artist_search(artist_name)

        slug = await self._cache.get_slug(artist_name, mbid)
        if not slug:
            slug = await self._slugs.resolve(artist_name, mbid)
            if not slug:
                return ArtistToursResult(message=ARTIST_NOT_FOUND_MESSAGE)
            await self._cache.cache_slug(artist_name, slug, mbid)

        entry = await self._cache.get_tours(slug)
        if entry is not None:
            if not self._cache.should_check_api(entry):
                self._logger.info("tour_cache_hit", artist=artist_name, slug=slug)
                return self._from_cache(slug, entry)

            try:
                current_tour = await self._current_tour(artist_name, mbid)
            except SetlistScoutError as exc:
                self._logger.warning(
                    "tour_check_failed_serving_cache", artist=artist_name, error=str(exc)
                )
                return self._from_cache(slug, entry)

            if not self._cache.should_update_tours(current_tour, entry):
                await self._cache.update_last_checked(slug)
                return self._from_cache(slug, entry)

            self._logger.info("new_tour_detected", artist=artist_name, tour=current_tour)

        tours = await self._fetch_complete_tours(artist_name, slug, mbid)
        if tours:
            await self._cache.cache_tours(slug, tours)
        return ArtistToursResult(tours=tours, artist_slug=slug, cached=False)

    # ------------------------------------------------------------------
    # Background revalidation
    # ------------------------------------------------------------------

    async def refresh_after_live_shows(
        self,
        artist_name: str,
        tour_name: str | None,
        slug: str | None,
        mbid: str | None = None,
    ) -> None:
        """Revalidate the cached tour list after a setlist search.

        Runs as fire-and-forget background work; failures are logged and
        never raised.
        """
        try:
            await self._refresh(artist_name, tour_name, slug, mbid)
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                "background_refresh_failed",
                artist=artist_name,
                tour=tour_name,
                error=str(exc),
                exc_info=True,
            )

    async def _refresh(
        self, artist_name: str, tour_name: str | None, slug: str | None, mbid: str | None
    ) -> None:
        if not is_valid_tour_name(tour_name):
            self._logger.debug("background_refresh_skipped", artist=artist_name, tour=tour_name)
            return

        cached_slug = await self._cache.get_slug(artist_name, mbid)
        if not cached_slug and slug:
            await self._cache.cache_slug(artist_name, slug, mbid)

        use_slug = slug or cached_slug
        if not use_slug:
            self._logger.debug("background_refresh_no_slug", artist=artist_name)
            return

        entry = await self._cache.get_tours(use_slug)
        if entry is None:
            self._logger.debug("background_refresh_no_entry", artist=artist_name, slug=use_slug)
            return

        if any(t.name == tour_name or t.id == tour_name for t in entry.tours):
            await self._cache.update_last_checked(use_slug)
            return

        self._logger.info("background_new_tour", artist=artist_name, tour=tour_name)
        tours = await self._fetch_complete_tours(artist_name, use_slug, mbid)
        if tours:
            await self._cache.cache_tours(use_slug, tours)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _current_tour(self, artist_name: str, mbid: str | None) -> str:
        page = await self._paginator.fetch_first_page(ArtistQuery(artist_name, mbid))
        return choose_tour(group_shows_by_tour(page.shows), artist_name)

    async def _fetch_complete_tours(
        self, artist_name: str, slug: str, mbid: str | None
    ) -> list[TourSummary]:
        if self._source is not None and self._source.is_available():
            return await self._source.fetch_tours(slug)
        if self._extractor is not None:
            return await self._extractor.fetch_all_tours(ArtistQuery(artist_name, mbid))
        self._logger.warning("no_tour_source_configured", artist=artist_name)
        return []

    def _from_cache(self, slug: str, entry: CachedTourSet) -> ArtistToursResult:
        age_minutes = (self._clock() - entry.cached_at) // 60_000
        return ArtistToursResult(
            tours=entry.tours,
            artist_slug=slug,
            cached=True,
            cache_age_minutes=int(age_minutes),
        )
