"""Abstract base class for music-metadata identity lookups.

Used to turn a streaming-service artist URL into a canonical artist name
and MusicBrainz identifier before searching the show catalog.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ArtistIdentity:
    """An artist as resolved by the metadata source.

    Attributes
    ----------
    mbid:
        MusicBrainz artist identifier.
    name:
        The artist's canonical name in MusicBrainz.
    """

    mbid: str
    name: str


class IMusicDatabaseProvider(ABC):
    """Contract for metadata services that resolve artist identity."""

    @abstractmethod
    async def lookup_artist_by_url(self, artist_url: str) -> ArtistIdentity | None:
        """Resolve a streaming-service artist URL to an identity.

        Parameters
        ----------
        artist_url:
            e.g. ``https://open.spotify.com/artist/4gzpq5DPGxSnKTe4SA8HAU``.

        Returns
        -------
        ArtistIdentity or None
            ``None`` when the URL is unknown to the metadata source.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short provider name for logs."""
