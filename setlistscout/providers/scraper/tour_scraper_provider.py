"""Tour-scraper microservice provider implementing ITourSourceProvider.

The scraper enumerates every tour on an artist's setlist.fm page, which
the public API cannot do cheaply.  Contract::

    GET {base_url}/api/tours/{slug}     X-API-Key: <key>
    200 {"tours": [{"name": ..., "showCount": ..., ...}, ...]}
"""

from __future__ import annotations

import httpx
import structlog

from setlistscout.interfaces.tour_source_provider import ITourSourceProvider
from setlistscout.models.tour import TourSummary
from setlistscout.utils.concurrency import RateLimitedFetcher
from setlistscout.utils.errors import UpstreamUnavailableError
from setlistscout.utils.logging import get_logger


class TourScraperProvider(ITourSourceProvider):
    """Client for the tour-scraper microservice.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient``.
    fetcher:
        Rate limiter for the scraper service.
    base_url:
        Service root; an empty value disables the provider.
    api_key:
        Sent as ``X-API-Key``.
    timeout:
        Per-request timeout in seconds; scraping a long history is slow.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        fetcher: RateLimitedFetcher,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
    ) -> None:
        self._http = http_client
        self._fetcher = fetcher
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return "tour_scraper"

    def is_available(self) -> bool:
        return bool(self._base_url)

    async def fetch_tours(self, artist_slug: str) -> list[TourSummary]:
        if not self.is_available():
            raise UpstreamUnavailableError(
                "Tour scraper service is not configured",
                provider_name=self.get_provider_name(),
                status_code=503,
            )

        url = f"{self._base_url}/api/tours/{artist_slug}"

        async def _request() -> httpx.Response:
            return await self._http.get(
                url, headers={"X-API-Key": self._api_key}, timeout=self._timeout
            )

        try:
            response = await self._fetcher.schedule(_request)
        except (httpx.HTTPStatusError, httpx.TransportError) as exc:
            self._logger.warning("tour_scraper_failed", slug=artist_slug, error=str(exc))
            raise UpstreamUnavailableError(
                f"Tour scraper request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            payload = response.json() or {}
            raw_tours = payload.get("tours") or []
            tours = [
                TourSummary.model_validate(t)
                for t in raw_tours
                if isinstance(t, dict) and t.get("name")
            ]
        except (ValueError, TypeError, AttributeError) as exc:
            self._logger.warning("tour_scraper_malformed", slug=artist_slug, error=str(exc))
            raise UpstreamUnavailableError(
                f"Tour scraper returned a malformed response: {exc}",
                provider_name=self.get_provider_name(),
                status_code=502,
            ) from exc
        self._logger.info("tour_scraper_fetched", slug=artist_slug, tours=len(tours))
        return tours
