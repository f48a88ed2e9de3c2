"""MusicBrainz provider implementing IMusicDatabaseProvider.

Resolves a streaming-service artist URL to a MusicBrainz artist through
the URL search endpoint::

    GET /ws/2/url/?query=url:<encoded url>&targettype=artist&fmt=json

The artist sits at ``urls[0]["relation-list"][0].relations[0].artist``.
MusicBrainz requires a descriptive User-Agent and allows one request per
second; the injected :class:`RateLimitedFetcher` enforces the latter.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from setlistscout.interfaces.music_db_provider import ArtistIdentity, IMusicDatabaseProvider
from setlistscout.utils.concurrency import RateLimitedFetcher
from setlistscout.utils.errors import UpstreamUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_BASE_URL = "https://musicbrainz.org/ws/2"
_DEFAULT_USER_AGENT = "SetListScout/1.0 (setlistscout@gmail.com)"


class MusicBrainzProvider(IMusicDatabaseProvider):
    """MusicBrainz URL-to-artist resolver.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient``.
    fetcher:
        Rate limiter dedicated to MusicBrainz (1 req/sec).
    base_url:
        Web-service root, e.g. ``https://musicbrainz.org/ws/2``.
    user_agent:
        Identifying User-Agent; MusicBrainz rejects anonymous clients.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        fetcher: RateLimitedFetcher,
        base_url: str = _DEFAULT_BASE_URL,
        user_agent: str = _DEFAULT_USER_AGENT,
    ) -> None:
        self._http = http_client
        self._fetcher = fetcher
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent

    def get_provider_name(self) -> str:
        return "musicbrainz"

    async def lookup_artist_by_url(self, artist_url: str) -> ArtistIdentity | None:
        """Resolve *artist_url* to the MusicBrainz artist it is linked to."""
        if not artist_url:
            return None

        # The URL is embedded in a Lucene query, so it is encoded by hand
        # and the request URL is passed through verbatim.
        request_url = (
            f"{self._base_url}/url/?query=url:{quote(artist_url, safe='')}"
            "&targettype=artist&fmt=json"
        )
        headers = {"User-Agent": self._user_agent, "Accept": "application/json"}

        async def _request() -> httpx.Response:
            return await self._http.get(request_url, headers=headers, timeout=15.0)

        try:
            response = await self._fetcher.schedule(_request)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise UpstreamUnavailableError(
                f"MusicBrainz lookup failed ({exc.response.status_code})",
                provider_name=self.get_provider_name(),
                status_code=exc.response.status_code if exc.response.status_code >= 500 else 502,
            ) from exc
        except httpx.TransportError as exc:
            raise UpstreamUnavailableError(
                f"Could not reach MusicBrainz: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        identity = self._extract_identity(response.json())
        logger.debug(
            "musicbrainz_url_lookup",
            url=artist_url,
            matched=identity is not None,
            mbid=identity.mbid if identity else None,
        )
        return identity

    @staticmethod
    def _extract_identity(payload: Any) -> ArtistIdentity | None:
        """Walk ``urls[0].relation-list[0].relations[0].artist``, or ``None``."""
        try:
            artist = payload["urls"][0]["relation-list"][0]["relations"][0]["artist"]
        except (KeyError, IndexError, TypeError):
            return None
        if not isinstance(artist, dict) or not artist.get("id"):
            return None
        return ArtistIdentity(mbid=artist["id"], name=artist.get("name") or "")
