"""setlist.fm catalog slug resolution.

The tour scraper and the tour cache key artists by the slug in their
setlist.fm page URL, e.g. ``the-beatles-23d6a88b`` from
``https://www.setlist.fm/setlists/the-beatles-23d6a88b.html``.  A name
search can return several acts (tribute bands included), so the best
matching artist is picked before the slug is read from its URL.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog

from setlistscout.interfaces.setlist_provider import ArtistQuery, ISetlistProvider
from setlistscout.models.setlist import ShowRecord
from setlistscout.utils.errors import SetlistScoutError
from setlistscout.utils.logging import get_logger
from setlistscout.utils.text_normalizer import fuzzy_match

_SLUG_PATTERN = re.compile(r"setlists/(.+)\.html")

TRIBUTE_KEYWORDS: tuple[str, ...] = ("tribute", "cover", "covers", "tribute band", "cover band")


def extract_slug_from_url(url: str | None) -> str | None:
    """Return the slug from a setlist.fm artist URL, or ``None``."""
    if not url:
        return None
    match = _SLUG_PATTERN.search(url)
    return match.group(1) if match else None


def find_best_artist_match(shows: Sequence[ShowRecord], search_name: str) -> ShowRecord | None:
    """Pick the show whose artist best matches *search_name*.

    Preference order: exact (case-insensitive) name, name starting with
    the search term, the closest fuzzy match among acts that are not
    tribute or cover bands, the first non-tribute act, the first show.
    """
    if not shows:
        return None

    wanted = search_name.lower().strip()

    for show in shows:
        if show.artist_name.lower().strip() == wanted:
            return show
    for show in shows:
        if show.artist_name.lower().strip().startswith(wanted):
            return show

    genuine = [
        show
        for show in shows
        if not any(keyword in show.artist_name.lower() for keyword in TRIBUTE_KEYWORDS)
    ]
    if genuine:
        best = fuzzy_match(search_name, [show.artist_name for show in genuine])
        if best is not None:
            return next(show for show in genuine if show.artist_name == best[0])
        return genuine[0]
    return shows[0]


class SlugResolver:
    """Resolves an artist to its setlist.fm slug with a single page-1 search."""

    def __init__(self, provider: ISetlistProvider) -> None:
        self._provider = provider
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def resolve(self, artist_name: str, mbid: str | None = None) -> str | None:
        """Return the slug, or ``None`` when it cannot be determined.

        Upstream errors are logged and reported as ``None``; a missing
        slug is not fatal to any caller.
        """
        try:
            page = await self._provider.search_setlists(ArtistQuery(artist_name, mbid), page=1)
        except SetlistScoutError as exc:
            self._logger.error(
                "slug_resolution_failed", artist=artist_name, mbid=mbid, error=str(exc)
            )
            return None

        if not page.shows:
            self._logger.warning("slug_no_setlists", artist=artist_name, mbid=mbid)
            return None

        best = find_best_artist_match(page.shows, artist_name)
        slug = extract_slug_from_url(best.artist_url if best else None)
        if slug is None:
            self._logger.warning(
                "slug_not_extracted",
                artist=artist_name,
                artist_url=best.artist_url if best else None,
            )
            return None

        self._logger.info(
            "slug_resolved", artist=artist_name, matched=best.artist_name, slug=slug
        )
        return slug
