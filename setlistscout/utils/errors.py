"""Custom exception hierarchy for SetlistScout.

All application exceptions inherit from :class:`SetlistScoutError`, which
carries an optional ``provider_name`` so error handlers can identify which
upstream integration (e.g. "setlistfm", "musicbrainz", "redis") caused the
failure, plus the HTTP-style ``status_code`` reported to callers.

The hierarchy is organized by where the failure originates:

    SetlistScoutError  (base -- catch-all for any setlistscout error)
    +-- UpstreamRateLimitedError  (429s that survived every retry)
    +-- NoDataFoundError          (artist exists, no usable shows)
    +-- ArtistNotFoundError       (upstream rejected the identifier)
    +-- InvalidQueryError         (malformed request or payload)
    +-- UpstreamUnavailableError  (gateway timeout / 5xx upstream)
    +-- CacheUnavailableError     (backing store unreachable)
    +-- PipelineCancelledError    (channel closed mid-run)
    +-- ConfigurationError        (startup / missing config)

NoDataFound and ArtistNotFound are both user-facing "no information
available" conditions; UpstreamUnavailable is retryable by the user.
"""

from __future__ import annotations


class SetlistScoutError(Exception):
    """Base exception for all SetlistScout errors.

    Every subclass carries a human-readable ``message``, an optional
    ``provider_name`` and a ``status_code``.  The ``__str__`` method
    prefixes the provider name in brackets for structured log output,
    e.g. ``[setlistfm] Rate limit exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Upstream catalog errors
# ---------------------------------------------------------------------------

class UpstreamRateLimitedError(SetlistScoutError):
    """Raised when an upstream keeps answering 429 after every retry."""

    status_code = 429

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


class NoDataFoundError(SetlistScoutError):
    """Raised when the artist exists upstream but has no shows for the query.

    ``details`` carries the pagination counters reported by the upstream
    (``total``, ``items_per_page``, ``page``) so callers can tell an empty
    tour filter apart from an empty catalog.
    """

    status_code = 404

    def __init__(
        self,
        message: str = "No setlist data found for this artist",
        provider_name: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)
        self.details = details or {}


class ArtistNotFoundError(SetlistScoutError):
    """Raised when the upstream catalog answers 404 for the artist."""

    status_code = 404

    def __init__(
        self,
        message: str = "Artist not found on Setlist.fm",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


class InvalidQueryError(SetlistScoutError):
    """Raised for malformed request parameters or malformed upstream payloads."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid artist data provided",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


class UpstreamUnavailableError(SetlistScoutError):
    """Raised on gateway timeouts, 5xx responses and transport failures."""

    status_code = 504

    def __init__(
        self,
        message: str = "Setlist.fm service is currently unavailable. Please try again later.",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class CacheUnavailableError(SetlistScoutError):
    """Raised by cache providers when the backing store cannot be reached.

    The tour cache catches this on the request path and behaves as an
    always-miss cache; administrative commands let it propagate.
    """

    status_code = 503

    def __init__(
        self,
        message: str = "Cache backend is unavailable",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class PipelineCancelledError(SetlistScoutError):
    """Raised inside a pipeline run once its cancellation token is signalled."""

    status_code = 499

    def __init__(
        self,
        message: str = "Pipeline run was cancelled",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)


class ConfigurationError(SetlistScoutError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=status_code)
