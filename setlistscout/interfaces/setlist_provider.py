"""Abstract base class for paginated show-history providers.

Defines the contract the paginator walks: one call returns one validated
page of shows for an artist, optionally scoped to a tour.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from setlistscout.models.setlist import SetlistPage

if TYPE_CHECKING:
    from setlistscout.utils.concurrency import CancellationToken


@dataclass(frozen=True)
class ArtistQuery:
    """How an artist is identified upstream.

    Attributes
    ----------
    name:
        Display name; used for the search when no MBID is known.
    mbid:
        MusicBrainz identifier.  Preferred over the name when set because
        it cannot collide with tribute acts or namesakes.
    """

    name: str
    mbid: str | None = None


class ISetlistProvider(ABC):
    """Contract for show-history search services (e.g. setlist.fm)."""

    @abstractmethod
    async def search_setlists(
        self,
        artist: ArtistQuery,
        page: int = 1,
        tour_name: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> SetlistPage:
        """Fetch one page of shows for *artist*.

        Parameters
        ----------
        artist:
            Artist to search for.
        page:
            1-based page number.
        tour_name:
            Restrict results to this tour when given.
        cancel_token:
            Checked before the request is dispatched.

        Returns
        -------
        SetlistPage
            The validated page.

        Raises
        ------
        setlistscout.utils.errors.ArtistNotFoundError
            On an upstream 404.
        setlistscout.utils.errors.InvalidQueryError
            On an upstream 400 or a malformed payload.
        setlistscout.utils.errors.UpstreamUnavailableError
            On 5xx, gateway timeouts and transport failures.
        setlistscout.utils.errors.UpstreamRateLimitedError
            When rate-limit retries are exhausted.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short provider name for logs."""
