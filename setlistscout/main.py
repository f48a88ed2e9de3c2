"""SetlistScout FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also exposes ``build_services`` for the cache CLI, which needs the same
providers without starting the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from setlistscout.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from setlistscout.api.routes import router as api_router
from setlistscout.config.loader import load_config
from setlistscout.config.settings import Settings
from setlistscout.interfaces.cache_provider import ICacheProvider
from setlistscout.pipeline.orchestrator import SetlistPipeline
from setlistscout.pipeline.progress_broker import ProgressBroker
from setlistscout.providers.cache.memory_cache import MemoryCacheProvider
from setlistscout.providers.cache.redis_cache import RedisCacheProvider
from setlistscout.providers.music_db.musicbrainz_provider import MusicBrainzProvider
from setlistscout.providers.scraper.tour_scraper_provider import TourScraperProvider
from setlistscout.providers.setlist.setlistfm_provider import SetlistFmProvider
from setlistscout.services.setlist_paginator import SetlistPaginator
from setlistscout.services.slug_resolver import SlugResolver
from setlistscout.services.tour_cache import TourCache
from setlistscout.services.tour_catalog import TourCatalogService
from setlistscout.services.tour_extractor import TourExtractor
from setlistscout.utils.concurrency import RateLimitedFetcher
from setlistscout.utils.errors import CacheUnavailableError
from setlistscout.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

_VERSION = str(config.get("app", {}).get("version", "0.1.0"))


# ---------------------------------------------------------------------------
# Component construction
# ---------------------------------------------------------------------------


def _build_cache(app_settings: Settings) -> ICacheProvider:
    if app_settings.redis_url:
        return RedisCacheProvider.from_url(app_settings.redis_url)
    return MemoryCacheProvider(max_size=app_settings.memory_cache_max_size)


def build_services(
    custom_settings: Settings | None = None,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service with injected dependencies.

    Parameters
    ----------
    custom_settings:
        Application settings.  Uses module-level ``settings`` if not provided.
    app_config:
        Resolved YAML configuration.  Uses module-level ``config`` if not
        provided.

    Returns
    -------
    dict
        Service instances keyed by role name.  The caller owns
        ``http_client`` and ``cache`` and must close them.
    """
    s = custom_settings or settings
    cfg = app_config if app_config is not None else config
    setlistfm_cfg = cfg.get("setlistfm", {})

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=30.0)
    cache = _build_cache(s)

    # -- Rate limiters: one per upstream, plus a faster bulk lane --
    setlistfm_fetcher = RateLimitedFetcher(
        "setlistfm",
        min_interval=s.setlistfm_min_interval,
        max_concurrent=s.setlistfm_max_concurrent,
        max_retries=s.setlistfm_max_retries,
        base_delay=s.setlistfm_retry_base_delay,
    )
    bulk_fetcher = RateLimitedFetcher(
        "setlistfm_bulk",
        min_interval=s.setlistfm_bulk_min_interval,
        max_concurrent=s.setlistfm_bulk_max_concurrent,
        max_retries=s.setlistfm_max_retries,
        base_delay=s.setlistfm_retry_base_delay,
    )
    musicbrainz_fetcher = RateLimitedFetcher(
        "musicbrainz", min_interval=s.musicbrainz_min_interval, max_concurrent=1
    )
    scraper_fetcher = RateLimitedFetcher("tour_scraper", min_interval=0.0, max_concurrent=2)

    # -- Providers --
    setlistfm = SetlistFmProvider(
        http_client=http_client,
        fetcher=setlistfm_fetcher,
        api_key=s.setlist_api_key,
        base_url=s.setlistfm_base_url,
    )
    setlistfm_bulk = SetlistFmProvider(
        http_client=http_client,
        fetcher=bulk_fetcher,
        api_key=s.setlist_api_key,
        base_url=s.setlistfm_base_url,
    )
    musicbrainz = MusicBrainzProvider(
        http_client=http_client,
        fetcher=musicbrainz_fetcher,
        base_url=s.musicbrainz_base_url,
        user_agent=s.musicbrainz_user_agent,
    )
    tour_scraper = TourScraperProvider(
        http_client=http_client,
        fetcher=scraper_fetcher,
        base_url=s.scraper_service_url,
        api_key=s.scraper_api_key,
        timeout=s.scraper_timeout,
    )

    # -- Services --
    paginator = SetlistPaginator(setlistfm)
    bulk_paginator = SetlistPaginator(setlistfm_bulk)
    tour_cache = TourCache(cache)
    tour_catalog = TourCatalogService(
        tour_cache=tour_cache,
        paginator=paginator,
        slug_resolver=SlugResolver(setlistfm),
        tour_source=tour_scraper if tour_scraper.is_available() else None,
        tour_extractor=TourExtractor(bulk_paginator),
    )
    broker = ProgressBroker(queue_size=s.progress_queue_size)
    pipeline = SetlistPipeline(
        music_db=musicbrainz,
        paginator=paginator,
        broker=broker,
        tour_catalog=tour_catalog,
        recent_pages=int(setlistfm_cfg.get("recent_pages", 3)),
    )

    return {
        "http_client": http_client,
        "cache": cache,
        "setlistfm": setlistfm,
        "tour_scraper": tour_scraper,
        "paginator": paginator,
        "tour_cache": tour_cache,
        "tour_catalog": tour_catalog,
        "broker": broker,
        "pipeline": pipeline,
        "settings": s,
    }


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every component for the web application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    components = build_services(app_settings)

    provider_registry: dict[str, Any] = {
        "setlistfm": components["setlistfm"].is_available(),
        "musicbrainz": True,
        "tour_scraper": components["tour_scraper"].is_available(),
        "cache": components["cache"].get_provider_name(),
    }
    components["provider_registry"] = provider_registry
    components["version"] = _VERSION
    return components


async def check_cache(cache: ICacheProvider) -> bool:
    """Ping a Redis backend; the in-memory cache is always reachable.

    An unreachable Redis is logged, not raised: tour lookups then degrade
    to cache misses.
    """
    if not isinstance(cache, RedisCacheProvider):
        return True
    try:
        return await cache.ping()
    except CacheUnavailableError as exc:
        _logger.warning("cache_unreachable", cache=cache.get_provider_name(), error=exc.message)
        return False


async def close_services(components: dict[str, Any]) -> None:
    """Release the shared HTTP client and the cache connection."""
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    cache = components["cache"]
    if isinstance(cache, RedisCacheProvider):
        await cache.close()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings)

    components["provider_registry"]["cache_reachable"] = await check_cache(components["cache"])

    for key, value in components.items():
        setattr(application.state, key, value)

    if not settings.setlist_api_key:
        _logger.warning("setlist_api_key_missing", message="setlist.fm requests will fail")

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        cache=components["provider_registry"]["cache"],
        cache_reachable=components["provider_registry"]["cache_reachable"],
        tour_scraper=components["provider_registry"]["tour_scraper"],
    )

    yield

    # -- Shutdown: let cache refreshes finish, then close shared clients --
    pipeline: SetlistPipeline = components["pipeline"]
    await pipeline.drain_background()
    await close_services(components)
    _logger.info("app_shutdown", message="HTTP client and cache closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="SetlistScout API",
        version=_VERSION,
        description=(
            "Look up an artist's recent setlists on setlist.fm, pick the tour "
            "that best represents what they are playing now, and rank the songs "
            "by how often they were performed."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "setlistscout.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
