"""Abstract base class for complete tour-list sources.

A tour source returns *every* tour an artist has played, which is the only
kind of result allowed to create a tour-cache entry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from setlistscout.models.tour import TourSummary


class ITourSourceProvider(ABC):
    """Contract for services that enumerate all tours of a catalog artist."""

    @abstractmethod
    async def fetch_tours(self, artist_slug: str) -> list[TourSummary]:
        """Return every tour listed for *artist_slug*, newest first.

        Raises
        ------
        setlistscout.utils.errors.UpstreamUnavailableError
            When the source cannot be reached.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short provider name for logs."""

    def is_available(self) -> bool:
        """Return ``True`` when the source is configured and usable."""
        return True
