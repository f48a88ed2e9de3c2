"""Complete tour list built from an artist's full show history.

Used when the tour-scraper service is not configured: every page of the
artist's history is walked (through the bulk fetcher) and shows are
aggregated per tour name.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from setlistscout.interfaces.setlist_provider import ArtistQuery
from setlistscout.models.setlist import ShowRecord
from setlistscout.models.tour import TourSummary
from setlistscout.services.setlist_paginator import PaginationError, SetlistPaginator
from setlistscout.services.tour_cache import is_valid_tour_name
from setlistscout.utils.errors import SetlistScoutError
from setlistscout.utils.logging import get_logger


def extract_tours(shows: Iterable[ShowRecord]) -> list[TourSummary]:
    """Aggregate *shows* into one :class:`TourSummary` per valid tour name.

    Sorted by last year descending, then show count descending.
    """
    counts: dict[str, int] = {}
    first: dict[str, ShowRecord] = {}
    last: dict[str, ShowRecord] = {}

    for show in shows:
        name = show.tour_name
        if not name:
            continue
        counts[name] = counts.get(name, 0) + 1
        show_date = show.show_date
        if show_date is None:
            continue
        if name not in first or show_date < first[name].show_date:
            first[name] = show
        if name not in last or show_date > last[name].show_date:
            last[name] = show

    tours = []
    for name, count in counts.items():
        if not is_valid_tour_name(name):
            continue
        earliest = first.get(name)
        latest = last.get(name)
        tours.append(
            TourSummary(
                name=name,
                show_count=count,
                first_date=earliest.event_date if earliest else None,
                last_date=latest.event_date if latest else None,
                first_year=earliest.show_date.year if earliest else None,
                last_year=latest.show_date.year if latest else None,
            )
        )

    return sorted(tours, key=lambda t: (t.last_year or 0, t.show_count or 0), reverse=True)


class TourExtractor:
    """Walks every page of an artist's history and extracts its tours.

    Parameters
    ----------
    paginator:
        A paginator backed by the bulk fetcher; a full history can run to
        hundreds of pages.
    """

    def __init__(self, paginator: SetlistPaginator) -> None:
        self._paginator = paginator
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def fetch_all_tours(self, artist: ArtistQuery) -> list[TourSummary]:
        """Return every tour of *artist*.

        Raises
        ------
        SetlistScoutError
            When the history cannot be read at all, or when any page is
            missing; a partial list must never be cached as complete.
        """
        result = await self._paginator.fetch_all_shows(artist)
        if isinstance(result, PaginationError):
            raise SetlistScoutError(result.message, status_code=result.status_code)
        if result.is_partial:
            raise SetlistScoutError(
                f"Tour extraction incomplete: pages {result.failed_pages} failed",
                provider_name="tour_extractor",
                status_code=502,
            )

        shows = result.shows
        tours = extract_tours(shows)
        self._logger.info(
            "tours_extracted", artist=artist.name, shows=len(shows), tours=len(tours)
        )
        return tours
