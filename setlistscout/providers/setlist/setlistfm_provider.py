"""setlist.fm provider implementing ISetlistProvider.

Queries ``GET /rest/1.0/search/setlists`` with either ``artistMbid`` or a
quoted ``artistName``, optionally scoped by ``tourName``.  Every request
goes through the injected :class:`RateLimitedFetcher`, which owns spacing,
concurrency and 429 retries; this module owns URL building, payload
validation and translating HTTP failures into the application's error
hierarchy:

    404                -> ArtistNotFoundError
    400                -> InvalidQueryError
    5xx / timeouts     -> UpstreamUnavailableError
    429 (exhausted)    -> UpstreamRateLimitedError (raised by the fetcher)
    anything else      -> SetlistScoutError with the upstream status
"""

from __future__ import annotations

from typing import Any

import httpx

from setlistscout.interfaces.setlist_provider import ArtistQuery, ISetlistProvider
from setlistscout.models.setlist import SetlistPage
from setlistscout.utils.concurrency import CancellationToken, RateLimitedFetcher
from setlistscout.utils.errors import (
    ArtistNotFoundError,
    InvalidQueryError,
    SetlistScoutError,
    UpstreamUnavailableError,
)
from setlistscout.utils.logging import get_logger

_DEFAULT_BASE_URL = "https://api.setlist.fm/rest/1.0"
_REQUEST_TIMEOUT = 30.0


class SetlistFmProvider(ISetlistProvider):
    """setlist.fm show-history client.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for connection pooling and testability.
    fetcher:
        The rate limiter shared by every setlist.fm call in the process.
    api_key:
        setlist.fm API key sent as ``x-api-key``.
    base_url:
        API root, without the ``/search/setlists`` suffix.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        fetcher: RateLimitedFetcher,
        api_key: str,
        base_url: str = _DEFAULT_BASE_URL,
    ) -> None:
        self._http = http_client
        self._fetcher = fetcher
        self._api_key = api_key
        self._search_url = f"{base_url.rstrip('/')}/search/setlists"
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return "setlistfm"

    def is_available(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # ISetlistProvider implementation
    # ------------------------------------------------------------------

    async def search_setlists(
        self,
        artist: ArtistQuery,
        page: int = 1,
        tour_name: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> SetlistPage:
        params = self._build_params(artist, page, tour_name)
        headers = {"x-api-key": self._api_key, "Accept": "application/json"}

        async def _request() -> httpx.Response:
            return await self._http.get(
                self._search_url, params=params, headers=headers, timeout=_REQUEST_TIMEOUT
            )

        try:
            response = await self._fetcher.schedule(_request, cancel_token=cancel_token)
        except httpx.HTTPStatusError as exc:
            raise self._map_status_error(exc, artist, page) from exc
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError(
                provider_name=self.get_provider_name(), status_code=504
            ) from exc
        except httpx.TransportError as exc:
            raise UpstreamUnavailableError(
                f"Could not reach setlist.fm: {exc}",
                provider_name=self.get_provider_name(),
                status_code=502,
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidQueryError(
                "setlist.fm returned a non-JSON response",
                provider_name=self.get_provider_name(),
            ) from exc

        result = SetlistPage.from_api(payload, page=page)
        self._logger.debug(
            "setlistfm_page_fetched",
            artist=artist.name,
            mbid=artist.mbid,
            tour=tour_name,
            page=page,
            shows=len(result.shows),
            total=result.total,
        )
        return result

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_params(artist: ArtistQuery, page: int, tour_name: str | None) -> dict[str, Any]:
        params: dict[str, Any] = {"p": page}
        if artist.mbid:
            params["artistMbid"] = artist.mbid
        else:
            # Quoting forces an exact-phrase search upstream.
            params["artistName"] = f'"{artist.name}"'
        if tour_name:
            params["tourName"] = tour_name
        return params

    def _map_status_error(
        self, exc: httpx.HTTPStatusError, artist: ArtistQuery, page: int
    ) -> SetlistScoutError:
        status = exc.response.status_code
        self._logger.warning(
            "setlistfm_request_failed",
            artist=artist.name,
            mbid=artist.mbid,
            page=page,
            status=status,
        )
        provider = self.get_provider_name()
        if status == 404:
            return ArtistNotFoundError(provider_name=provider)
        if status == 400:
            return InvalidQueryError(provider_name=provider)
        if status == 504:
            return UpstreamUnavailableError(provider_name=provider, status_code=504)
        if status >= 500:
            return UpstreamUnavailableError(
                f"setlist.fm returned an error ({status}). Please try again later.",
                provider_name=provider,
                status_code=status,
            )
        return SetlistScoutError(
            "An error occurred while fetching setlists.",
            provider_name=provider,
            status_code=status,
        )
