"""Paginated show-history fetching.

# ─── HOW PAGINATION WORKS ─────────────────────────────────────────────
#
#   page 1 ──(alone; tells us total / itemsPerPage)──→ empty? NoDataFound
#      │
#      ▼
#   pages 2..N scheduled together ──→ RateLimitedFetcher (spacing, cap)
#      │
#      ▼
#   results reassembled by page index (never by arrival order)
#
# Page 1 failures raise: no partial work exists yet.  Later failures are
# collected; the run keeps the pages that succeeded and reports the
# missing ones in ``PaginationResult.failed_pages``.  Only when every
# later page fails is a ``PaginationError`` returned instead.
#
# Cancellation is checked before page 1, at the top of every later page
# request and once more after the fan-out settles.  Requests already in
# flight are allowed to finish; nothing new is dispatched.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from setlistscout.interfaces.setlist_provider import ArtistQuery, ISetlistProvider
from setlistscout.models.setlist import SetlistPage, ShowRecord
from setlistscout.utils.concurrency import CancellationToken
from setlistscout.utils.errors import NoDataFoundError, SetlistScoutError
from setlistscout.utils.logging import get_logger

_DEFAULT_MIDDLE_PAGES = 3


@dataclass(frozen=True)
class PaginationResult:
    """Pages fetched for one query, in page order."""

    pages: list[SetlistPage]
    failed_pages: list[int] = field(default_factory=list)

    @property
    def shows(self) -> list[ShowRecord]:
        return [show for page in self.pages for show in page.shows]

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_pages)


@dataclass(frozen=True)
class PaginationError:
    """Structured failure returned when no page after the first succeeded."""

    status_code: int
    message: str
    failed_pages: list[int] = field(default_factory=list)


class SetlistPaginator:
    """Walks the show-history pages of one artist through a setlist provider.

    Parameters
    ----------
    provider:
        The show-history provider; its fetcher bounds concurrency.
    """

    def __init__(self, provider: ISetlistProvider) -> None:
        self._provider = provider
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_first_page(
        self,
        artist: ArtistQuery,
        tour_name: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> SetlistPage:
        """Fetch page 1, raising :class:`NoDataFoundError` if it is empty."""
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        page = await self._provider.search_setlists(
            artist, page=1, tour_name=tour_name, cancel_token=cancel_token
        )
        if not page.shows:
            message = (
                f"No setlists found for {artist.name} on tour '{tour_name}'"
                if tour_name
                else f"No setlist data found for {artist.name}"
            )
            raise NoDataFoundError(
                message,
                provider_name=self._provider.get_provider_name(),
                details={
                    "total": page.total,
                    "items_per_page": page.items_per_page,
                    "page": page.page,
                    "tour": tour_name,
                },
            )
        return page

    async def fetch_all_shows(
        self,
        artist: ArtistQuery,
        tour_name: str | None = None,
        cancel_token: CancellationToken | None = None,
        first_page: SetlistPage | None = None,
    ) -> PaginationResult | PaginationError:
        """Fetch every page for *artist* (optionally one tour).

        Parameters
        ----------
        artist:
            Artist to fetch.
        tour_name:
            Restrict to one tour when given.
        cancel_token:
            Cooperative cancellation token.
        first_page:
            An already-fetched page 1 for the same query, reused as-is.

        Returns
        -------
        PaginationResult or PaginationError
            Pages in page order, or a structured error when every page
            after the first failed.

        Raises
        ------
        SetlistScoutError
            Any page-1 failure (including :class:`NoDataFoundError`).
        PipelineCancelledError
            When the token is signalled.
        """
        first = first_page or await self.fetch_first_page(artist, tour_name, cancel_token)
        total_pages = first.total_pages
        remaining = list(range(2, total_pages + 1))

        self._logger.info(
            "pagination_started",
            artist=artist.name,
            tour=tour_name,
            total=first.total,
            total_pages=total_pages,
        )
        if not remaining:
            return PaginationResult(pages=[first])

        fetched, failures = await self._fetch_pages(artist, remaining, tour_name, cancel_token)

        if not fetched:
            first_failure = failures[min(failures)]
            self._logger.error(
                "pagination_failed",
                artist=artist.name,
                tour=tour_name,
                failed_pages=sorted(failures),
            )
            return PaginationError(
                status_code=first_failure.status_code,
                message=first_failure.message,
                failed_pages=sorted(failures),
            )

        if failures:
            self._logger.warning(
                "pagination_partial",
                artist=artist.name,
                tour=tour_name,
                failed_pages=sorted(failures),
                kept_pages=len(fetched) + 1,
            )

        pages = [first] + [fetched[number] for number in sorted(fetched)]
        return PaginationResult(pages=pages, failed_pages=sorted(failures))

    async def fetch_recent_pages(
        self,
        artist: ArtistQuery,
        page_count: int = 3,
        cancel_token: CancellationToken | None = None,
        first_page: SetlistPage | None = None,
    ) -> PaginationResult:
        """Fetch at most *page_count* leading pages (newest shows first).

        Later-page failures are dropped with a warning; page 1 failures raise.
        """
        first = first_page or await self.fetch_first_page(artist, cancel_token=cancel_token)
        last = min(max(page_count, 1), first.total_pages)
        fetched, failures = await self._fetch_pages(
            artist, range(2, last + 1), None, cancel_token
        )
        if failures:
            self._logger.warning(
                "recent_pages_partial", artist=artist.name, failed_pages=sorted(failures)
            )
        pages = [first] + [fetched[number] for number in sorted(fetched)]
        return PaginationResult(pages=pages, failed_pages=sorted(failures))

    async def discover_tour_names(
        self,
        artist: ArtistQuery,
        max_middle_pages: int = _DEFAULT_MIDDLE_PAGES,
        cancel_token: CancellationToken | None = None,
        first_page: SetlistPage | None = None,
    ) -> list[str]:
        """Sample pages to list the distinct tour names an artist has used.

        Fetches page 1 and the last page.  If both carry exactly the same
        single tour name the artist is on one consistent tour and the
        search stops.  Otherwise up to *max_middle_pages* evenly spaced
        middle pages are sampled as well.

        Returns
        -------
        list[str]
            Distinct tour names in the order first seen (page order).
        """
        first = first_page or await self.fetch_first_page(artist, cancel_token=cancel_token)
        total_pages = first.total_pages
        first_names = _tour_names(first.shows)
        if total_pages <= 1:
            return first_names

        fetched, _ = await self._fetch_pages(artist, [total_pages], None, cancel_token)
        last_names = _tour_names(fetched[total_pages].shows) if total_pages in fetched else []

        if len(first_names) == 1 and first_names == last_names:
            self._logger.info(
                "tour_discovery_short_circuit", artist=artist.name, tour=first_names[0]
            )
            return first_names

        middle = _middle_pages(total_pages, max_middle_pages)
        if middle:
            fetched.update((await self._fetch_pages(artist, middle, None, cancel_token))[0])

        names = list(first_names)
        for number in sorted(fetched):
            for name in _tour_names(fetched[number].shows):
                if name not in names:
                    names.append(name)

        self._logger.info(
            "tour_discovery_complete",
            artist=artist.name,
            pages_sampled=len(fetched) + 1,
            tours=len(names),
        )
        return names

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fetch_pages(
        self,
        artist: ArtistQuery,
        page_numbers: Iterable[int],
        tour_name: str | None,
        cancel_token: CancellationToken | None,
    ) -> tuple[dict[int, SetlistPage], dict[int, SetlistScoutError]]:
        """Fetch *page_numbers* concurrently; return successes and failures by index."""
        numbers = list(page_numbers)

        async def _one(number: int) -> SetlistPage:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            return await self._provider.search_setlists(
                artist, page=number, tour_name=tour_name, cancel_token=cancel_token
            )

        results = await asyncio.gather(*(_one(n) for n in numbers), return_exceptions=True)

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        fetched: dict[int, SetlistPage] = {}
        failures: dict[int, SetlistScoutError] = {}
        for number, result in zip(numbers, results):
            if isinstance(result, SetlistPage):
                fetched[number] = result
            elif isinstance(result, SetlistScoutError):
                self._logger.warning(
                    "page_fetch_failed",
                    artist=artist.name,
                    page=number,
                    status=result.status_code,
                    error=result.message,
                )
                failures[number] = result
            else:
                raise result
        return fetched, failures


def _tour_names(shows: Iterable[ShowRecord]) -> list[str]:
    names: list[str] = []
    for show in shows:
        if show.tour_name and show.tour_name not in names:
            names.append(show.tour_name)
    return names


def _middle_pages(total_pages: int, limit: int) -> list[int]:
    """Up to *limit* evenly spaced page numbers strictly between 1 and *total_pages*."""
    inner = total_pages - 2
    if inner <= 0 or limit <= 0:
        return []
    if inner <= limit:
        return list(range(2, total_pages))
    step = (total_pages - 1) / (limit + 1)
    return sorted({round(1 + step * i) for i in range(1, limit + 1)})
