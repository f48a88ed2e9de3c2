"""Utility modules for SetlistScout.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at
  SetlistScoutError; every subclass carries the HTTP status it maps to.
- **concurrency** -- RateLimitedFetcher: per-upstream request spacing,
  bounded concurrency and 429 retry with backoff; CancellationToken for
  cooperative cancellation of a pipeline run.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **text_normalizer** -- Artist name normalization (case, accents,
  punctuation) and fuzzy matching with rapidfuzz.
"""

# -- Domain exception hierarchy --------------------------------------------
from setlistscout.utils.errors import (
    ArtistNotFoundError,
    CacheUnavailableError,
    ConfigurationError,
    InvalidQueryError,
    NoDataFoundError,
    PipelineCancelledError,
    SetlistScoutError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
)

# -- Rate limiting ---------------------------------------------------------
from setlistscout.utils.concurrency import (
    CancellationToken,
    RateLimitedFetcher,
    parse_retry_after,
)

# -- Structured logging setup ----------------------------------------------
from setlistscout.utils.logging import configure_logging, get_logger

# -- Artist name matching --------------------------------------------------
from setlistscout.utils.text_normalizer import fuzzy_match, is_artist_name_match, normalize_name

__all__ = [
    "ArtistNotFoundError",
    "CacheUnavailableError",
    "CancellationToken",
    "ConfigurationError",
    "InvalidQueryError",
    "NoDataFoundError",
    "PipelineCancelledError",
    "RateLimitedFetcher",
    "SetlistScoutError",
    "UpstreamRateLimitedError",
    "UpstreamUnavailableError",
    "configure_logging",
    "fuzzy_match",
    "get_logger",
    "is_artist_name_match",
    "normalize_name",
    "parse_retry_after",
]
