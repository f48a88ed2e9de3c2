"""Rate-limited request scheduling shared by every upstream integration.

:class:`RateLimitedFetcher` is the single serialization point for one
upstream API.  Every call to setlist.fm, MusicBrainz or the tour scraper
goes through a fetcher built with that integration's limits, so retry and
spacing rules live here and nowhere else.  :class:`CancellationToken` is the
cooperative stop flag a run checks between requests.

# ─── HOW SCHEDULING WORKS ─────────────────────────────────────────────
#
#   caller ──schedule(fn)──→ [semaphore: max_concurrent slots, FIFO]
#                                   │
#                                   ▼
#                           [spacing lock: >= min_interval between sends]
#                                   │
#                                   ▼
#                               fn() → httpx.Response
#                                   │
#                 429? ── yes ──→ sleep(Retry-After | backoff) + jitter
#                  │                 then back to the spacing lock
#                  no
#                  ▼
#         2xx → return     other status → httpx.HTTPStatusError
#
# Both asyncio.Semaphore and asyncio.Lock wake waiters in the order they
# started waiting, which gives submission-order (FIFO) release.
# A retry keeps its concurrency slot, so a 429 storm slows the whole
# integration down instead of letting queued requests pile onto it.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import random
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable

import httpx
import structlog

from setlistscout.utils.errors import PipelineCancelledError, UpstreamRateLimitedError
from setlistscout.utils.logging import get_logger

_DEFAULT_JITTER = (0.1, 0.4)  # seconds

RequestFn = Callable[[], Awaitable[httpx.Response]]


def parse_retry_after(value: str | None) -> float | None:
    """Convert a ``Retry-After`` header into a delay in seconds.

    Accepts both forms allowed by RFC 9110: a non-negative number of
    seconds or an HTTP-date.  Returns ``None`` when the header is absent
    or unparseable; dates in the past yield ``0.0``.
    """
    if not value:
        return None
    value = value.strip()

    try:
        return max(0.0, float(value))
    except ValueError:
        pass

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0.0, (retry_at - datetime.now(tz=timezone.utc)).total_seconds())


class CancellationToken:
    """One-shot flag shared between a progress channel and its pipeline run.

    The channel owner calls :meth:`cancel` (e.g. when the client
    disconnects).  The pipeline polls :attr:`cancelled` or calls
    :meth:`raise_if_cancelled` at page-fetch boundaries and before every
    stage transition.  Requests already in flight are left to finish.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "client disconnected") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelledError(f"Pipeline run was cancelled: {self._reason}")

    async def wait(self) -> None:
        await self._event.wait()


class RateLimitedFetcher:
    """Outbound request scheduler with spacing, concurrency cap and 429 retry.

    Parameters
    ----------
    name:
        Integration name used in log events and error ``provider_name``.
    min_interval:
        Minimum seconds between two dispatched requests.
    max_concurrent:
        Maximum number of requests in flight at once.
    max_retries:
        Retries after the first attempt when the upstream answers 429.
    base_delay:
        Initial backoff in seconds when no ``Retry-After`` is supplied;
        doubled after every retry.
    jitter:
        ``(low, high)`` seconds of random delay added to every retry.
    """

    def __init__(
        self,
        name: str,
        *,
        min_interval: float = 0.6,
        max_concurrent: int = 1,
        max_retries: int = 3,
        base_delay: float = 1.0,
        jitter: tuple[float, float] = _DEFAULT_JITTER,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._name = name
        self._min_interval = min_interval
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._jitter = jitter
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._spacing_lock = asyncio.Lock()
        self._last_dispatch: float = 0.0
        self._submitted = 0
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def schedule(
        self,
        request_fn: RequestFn,
        cancel_token: CancellationToken | None = None,
    ) -> httpx.Response:
        """Queue *request_fn* and return its successful response.

        Parameters
        ----------
        request_fn:
            Zero-argument callable returning an awaitable
            ``httpx.Response``.  It is called once per attempt.
        cancel_token:
            Optional token checked after the request leaves the queue and
            before every attempt; a signalled token raises
            :class:`~setlistscout.utils.errors.PipelineCancelledError`
            without dispatching.

        Returns
        -------
        httpx.Response
            The first non-429 response with a 2xx status.

        Raises
        ------
        UpstreamRateLimitedError
            When the upstream still answers 429 after ``max_retries``.
        httpx.HTTPStatusError
            Immediately, for any other non-2xx response.
        """
        self._submitted += 1
        ticket = self._submitted
        async with self._semaphore:
            return await self._send_with_retry(request_fn, ticket, cancel_token)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _wait_for_slot(self) -> None:
        """Hold the caller until ``min_interval`` has passed since the last send."""
        async with self._spacing_lock:
            elapsed = time.monotonic() - self._last_dispatch
            if self._last_dispatch > 0 and elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_dispatch = time.monotonic()

    async def _send_with_retry(
        self,
        request_fn: RequestFn,
        ticket: int,
        cancel_token: CancellationToken | None,
    ) -> httpx.Response:
        backoff = self._base_delay

        for attempt in range(self._max_retries + 1):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            await self._wait_for_slot()

            response = await request_fn()
            if response.status_code != 429:
                response.raise_for_status()
                return response

            if attempt >= self._max_retries:
                break

            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            wait = retry_after if retry_after is not None else backoff
            delay = wait + random.uniform(*self._jitter)
            self._logger.warning(
                "upstream_rate_limited",
                integration=self._name,
                ticket=ticket,
                attempt=attempt + 1,
                retry_after=retry_after,
                delay=round(delay, 3),
            )
            await asyncio.sleep(delay)
            backoff *= 2

        self._logger.error(
            "upstream_rate_limit_exhausted",
            integration=self._name,
            ticket=ticket,
            attempts=self._max_retries + 1,
        )
        raise UpstreamRateLimitedError(provider_name=self._name)
