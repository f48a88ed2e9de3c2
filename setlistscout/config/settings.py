"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from, in priority order:
#
#   1. Environment variables, e.g. SETLIST_API_KEY=abc123
#   2. The project-root .env file (local development only)
#   3. The defaults declared below
#
# Field ``setlist_api_key`` maps to env var ``SETLIST_API_KEY``.
# An empty string means "not configured": REDIS_URL="" selects the
# in-memory cache, SCRAPER_SERVICE_URL="" disables the tour scraper and
# full tour lists are rebuilt from the setlist.fm show history instead.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """SetlistScout application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === setlist.fm ===
    setlist_api_key: str = ""
    setlistfm_base_url: str = "https://api.setlist.fm/rest/1.0"
    # Main search limiter: one request in flight, 600 ms apart.
    setlistfm_min_interval: float = 0.6
    setlistfm_max_concurrent: int = 1
    # Bulk tour extraction runs on a separate, faster limiter.
    setlistfm_bulk_min_interval: float = 0.063
    setlistfm_bulk_max_concurrent: int = 7
    setlistfm_max_retries: int = 3
    setlistfm_retry_base_delay: float = 1.0

    # === MusicBrainz ===
    musicbrainz_base_url: str = "https://musicbrainz.org/ws/2"
    musicbrainz_user_agent: str = "SetListScout/1.0 (setlistscout@gmail.com)"
    musicbrainz_min_interval: float = 1.0

    # === Tour scraper microservice ===
    scraper_service_url: str = ""
    scraper_api_key: str = ""
    scraper_timeout: float = 30.0

    # === Cache ===
    redis_url: str = ""
    memory_cache_max_size: int = 5000

    # === Progress streaming ===
    progress_queue_size: int = 100

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 5001
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: str = "*"

    def get_cors_origins(self) -> list[str]:
        """Split the comma-separated ``CORS_ORIGINS`` value into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
