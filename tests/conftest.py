"""Shared pytest fixtures for the SetlistScout test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from setlistscout.interfaces.setlist_provider import ISetlistProvider
from setlistscout.models.setlist import SetlistPage, ShowRecord
from setlistscout.providers.cache.memory_cache import MemoryCacheProvider
from setlistscout.utils.concurrency import RateLimitedFetcher

# ---------------------------------------------------------------------------
# Raw setlist.fm payload builders
# ---------------------------------------------------------------------------


def show_payload(
    show_id: str,
    artist: str = "Coldplay",
    event_date: str = "01-06-2024",
    tour: str | None = None,
    songs: Sequence[str] = ("Yellow",),
    covers: dict[str, str] | None = None,
    tape: Sequence[str] = (),
    encore: Sequence[str] = (),
    artist_url: str | None = "https://www.setlist.fm/setlists/coldplay-3d6bde3.html",
    mbid: str | None = None,
) -> dict[str, Any]:
    """One element of the ``setlist`` array as setlist.fm returns it.

    ``songs=()`` produces a show with no set sections at all.
    """
    covers = covers or {}

    def _song(name: str) -> dict[str, Any]:
        raw: dict[str, Any] = {"name": name}
        if name in covers:
            raw["cover"] = {"name": covers[name]}
        if name in tape:
            raw["tape"] = True
        return raw

    sets: list[dict[str, Any]] = []
    if songs:
        sets.append({"song": [_song(name) for name in songs]})
    if encore:
        sets.append({"encore": 1, "song": [_song(name) for name in encore]})

    payload: dict[str, Any] = {
        "id": show_id,
        "eventDate": event_date,
        "artist": {"name": artist, "mbid": mbid, "url": artist_url},
        "venue": {"name": "Arena", "city": {"name": "London", "country": {"name": "UK"}}},
        "sets": {"set": sets},
    }
    if tour:
        payload["tour"] = {"name": tour}
    return payload


def page_payload(
    shows: Sequence[dict[str, Any]],
    total: int | None = None,
    page: int = 1,
    items_per_page: int = 20,
) -> dict[str, Any]:
    return {
        "type": "setlists",
        "itemsPerPage": items_per_page,
        "page": page,
        "total": len(shows) if total is None else total,
        "setlist": list(shows),
    }


def build_show(show_id: str = "s1", **kwargs: Any) -> ShowRecord:
    return ShowRecord.from_api(show_payload(show_id, **kwargs))


def build_page(
    shows: Sequence[ShowRecord],
    total: int | None = None,
    page: int = 1,
    items_per_page: int = 20,
) -> SetlistPage:
    return SetlistPage(
        total=len(shows) if total is None else total,
        items_per_page=items_per_page,
        page=page,
        shows=list(shows),
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_show() -> Callable[..., ShowRecord]:
    """Factory for :class:`ShowRecord` built through ``from_api``."""
    return build_show


@pytest.fixture
def make_page() -> Callable[..., SetlistPage]:
    return build_page


@pytest.fixture
def make_show_payload() -> Callable[..., dict[str, Any]]:
    return show_payload


@pytest.fixture
def make_page_payload() -> Callable[..., dict[str, Any]]:
    return page_payload


@pytest.fixture
def memory_cache() -> MemoryCacheProvider:
    return MemoryCacheProvider(max_size=100)


@pytest.fixture
def fast_fetcher() -> RateLimitedFetcher:
    """A fetcher with no spacing, no jitter and millisecond backoff."""
    return RateLimitedFetcher(
        "test", min_interval=0.0, max_concurrent=4, max_retries=3, base_delay=0.001, jitter=(0, 0)
    )


@pytest.fixture
def make_setlist_provider() -> Callable[..., MagicMock]:
    """Factory for a mock :class:`ISetlistProvider`.

    ``pages`` maps a page number, or a ``(tour_name, page)`` pair, to a
    :class:`SetlistPage` or to an exception to raise.  ``delays`` maps a
    page number to seconds to wait before answering.  Every call is
    recorded on ``provider.calls`` as ``(tour_name, page)``.
    """

    def _factory(
        pages: dict[Any, SetlistPage | Exception],
        delays: dict[int, float] | None = None,
    ) -> MagicMock:
        provider = MagicMock(spec=ISetlistProvider)
        provider.get_provider_name.return_value = "setlistfm"
        provider.calls = []

        async def _search(artist, page=1, tour_name=None, cancel_token=None):
            provider.calls.append((tour_name, page))
            if delays and page in delays:
                await asyncio.sleep(delays[page])
            result = pages.get((tour_name, page), pages.get(page))
            if result is None:
                return SetlistPage(total=0, items_per_page=20, page=page, shows=[])
            if isinstance(result, Exception):
                raise result
            return result

        provider.search_setlists = AsyncMock(side_effect=_search)
        return provider

    return _factory
