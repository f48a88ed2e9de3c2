# =============================================================================
# setlistscout/cli/cache.py - Tour Cache Administration CLI
# =============================================================================
#
# Operator tooling for the artist tour cache (Redis in production, the
# in-memory TLRU cache otherwise).  Runs outside the web server and builds
# the same providers the app uses via ``setlistscout.main.build_services``.
#
# Subcommands:
#
#   warm      Pre-populate slugs and tour lists for a set of artists
#   inspect   Show what is cached for one artist (slug, tours, TTL)
#   keys      List cache keys under a prefix
#   clear     Delete every key under a prefix
#   discover  Sample an artist's show history for distinct tour names
#
# Usage examples:
#   python -m setlistscout.cli warm
#   python -m setlistscout.cli warm --artist "Radiohead" --artist "Metallica"
#   python -m setlistscout.cli warm --popular 10 --delay 1
#   python -m setlistscout.cli inspect "Taylor Swift"
#   python -m setlistscout.cli clear --prefix artist:tours: --yes
#   python -m setlistscout.cli discover "Pearl Jam"
# =============================================================================

"""Standalone CLI for managing the SetlistScout tour cache.

Usage::

    python -m setlistscout.cli warm [--artist NAME ...] [--popular N] [--delay S]
    python -m setlistscout.cli inspect ARTIST [MBID]
    python -m setlistscout.cli keys [--prefix artist:]
    python -m setlistscout.cli clear [--prefix artist:] [--yes]
    python -m setlistscout.cli discover ARTIST

Exit status is 0 on success and 1 when a command could not do its job.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from typing import Any

from setlistscout.interfaces.setlist_provider import ArtistQuery
from setlistscout.services.tour_cache import TourCache
from setlistscout.utils.errors import SetlistScoutError

_DEFAULT_WARM_DELAY = 2.0


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_ttl(ttl: int | None) -> str:
    """Render a remaining TTL in seconds as ``"Xd Yh Zm"``."""
    if ttl is None:
        return "not cached"
    if ttl < 0:
        return "no expiry"
    days, remainder = divmod(ttl, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60
    return f"{days}d {hours}h {minutes}m"


def _format_epoch_ms(value: int) -> str:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _warm_artists(
    args: argparse.Namespace, services: dict[str, Any], app_config: dict
) -> list[str]:
    if args.artist:
        return list(args.artist)
    if args.popular:
        tour_cache: TourCache = services["tour_cache"]
        return await tour_cache.popular_artists(limit=args.popular)
    return list(app_config.get("warm", {}).get("artists", []))


async def _handle_warm(args: argparse.Namespace, services: dict[str, Any], app_config: dict) -> int:
    """Fetch and cache tour lists for each artist, pausing between artists."""
    artists = await _warm_artists(args, services, app_config)
    if not artists:
        print("No artists to warm.")
        return 0

    delay = args.delay
    if delay is None:
        delay = float(app_config.get("warm", {}).get("delay_seconds", _DEFAULT_WARM_DELAY))

    tour_catalog = services["tour_catalog"]
    failures = 0
    print(f"Warming tour cache for {len(artists)} artists...")

    for index, artist_name in enumerate(artists):
        print(f"Processing {artist_name}...")
        try:
            result = await tour_catalog.get_artist_tours(artist_name)
        except SetlistScoutError as exc:
            failures += 1
            print(f"  - Error: {exc.message}", file=sys.stderr)
        else:
            if result.artist_slug is None:
                failures += 1
                print(f"  - {result.message}")
            elif result.cached:
                print(f"  - Already cached ({len(result.tours)} tours)")
            else:
                print(f"  - Cached {len(result.tours)} tours for {result.artist_slug}")

        if delay > 0 and index < len(artists) - 1:
            await asyncio.sleep(delay)

    print(f"\nCache warming complete: {len(artists) - failures} ok, {failures} failed")
    return 1 if failures else 0


async def _handle_inspect(args: argparse.Namespace, services: dict[str, Any]) -> int:
    """Print the cached slug, tour list and remaining TTL for one artist."""
    tour_cache: TourCache = services["tour_cache"]
    info = await tour_cache.inspect(args.artist, args.mbid)

    print(f"Slug key:  {info['slug_key']}")
    if not info["slug"]:
        print("  No slug cached for this artist.")
        return 1
    print(f"Slug:      {info['slug']}")
    print(f"Tours key: {info['tours_key']}")

    entry = info["tours"]
    if entry is None:
        print("  No tours cached.")
        return 0

    print(f"TTL:       {format_ttl(info['ttl'])}")
    print(f"Cached at:    {_format_epoch_ms(entry.cached_at)}")
    print(f"Last updated: {entry.last_updated}")
    print(f"Last checked: {_format_epoch_ms(entry.last_checked)}")
    print(f"Tours:        {len(entry.tours)} (of {entry.original_count} offered)")
    for tour in entry.tours:
        count = tour.show_count if tour.show_count is not None else "?"
        years = f"{tour.first_year}-{tour.last_year}" if tour.first_year else "unknown years"
        print(f"  - {tour.name} ({count} shows, {years})")
    return 0


async def _handle_keys(args: argparse.Namespace, services: dict[str, Any]) -> int:
    tour_cache: TourCache = services["tour_cache"]
    keys = await tour_cache.list_keys(args.prefix)
    for key in keys:
        print(key)
    print(f"\n{len(keys)} keys under '{args.prefix}'")
    return 0


async def _handle_clear(args: argparse.Namespace, services: dict[str, Any]) -> int:
    """Delete every key under the prefix.  Requires confirmation unless --yes."""
    tour_cache: TourCache = services["tour_cache"]
    keys = await tour_cache.list_keys(args.prefix)
    if not keys:
        print(f"No keys found under '{args.prefix}'. Nothing to clear.")
        return 0

    print(f"  Found {len(keys)} keys under '{args.prefix}'")
    if not args.yes:
        confirm = input(f"  Delete all {len(keys)} keys? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("  Aborted.")
            return 0

    deleted = await tour_cache.clear(args.prefix)
    print(f"\n  Deleted {deleted} keys.")
    return 0


async def _handle_discover(
    args: argparse.Namespace, services: dict[str, Any], app_config: dict
) -> int:
    """List the distinct tour names found by sampling the show history."""
    max_middle = int(app_config.get("setlistfm", {}).get("max_middle_pages", 3))
    paginator = services["paginator"]
    try:
        names = await paginator.discover_tour_names(
            ArtistQuery(args.artist, args.mbid), max_middle_pages=max_middle
        )
    except SetlistScoutError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(f"Tours found for {args.artist}: {len(names)}")
    for name in names:
        print(f"  - {name}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the cache CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m setlistscout.cli",
        description="Manage the SetlistScout artist tour cache.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Cache commands")

    # -- warm --
    warm_parser = subparsers.add_parser("warm", help="Pre-populate tour lists")
    warm_parser.add_argument(
        "--artist",
        action="append",
        help="Artist to warm (repeatable); overrides the configured list",
    )
    warm_parser.add_argument(
        "--popular",
        type=int,
        default=0,
        help="Warm the N most searched artists instead of the configured list",
    )
    warm_parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait between artists (default: warm.delay_seconds)",
    )

    # -- inspect --
    inspect_parser = subparsers.add_parser("inspect", help="Show cached data for an artist")
    inspect_parser.add_argument("artist", help="Artist name")
    inspect_parser.add_argument("mbid", nargs="?", default=None, help="MusicBrainz id")

    # -- keys --
    keys_parser = subparsers.add_parser("keys", help="List cache keys")
    keys_parser.add_argument("--prefix", default="artist:", help="Key prefix (default: artist:)")

    # -- clear --
    clear_parser = subparsers.add_parser("clear", help="Delete cache keys under a prefix")
    clear_parser.add_argument("--prefix", default="artist:", help="Key prefix (default: artist:)")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    # -- discover --
    discover_parser = subparsers.add_parser(
        "discover", help="Sample an artist's history for tour names"
    )
    discover_parser.add_argument("artist", help="Artist name")
    discover_parser.add_argument("--mbid", default=None, help="MusicBrainz id")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def dispatch(args: argparse.Namespace, services: dict[str, Any], app_config: dict) -> int:
    """Run the handler for ``args.command`` against built services."""
    if args.command == "warm":
        return await _handle_warm(args, services, app_config)
    if args.command == "inspect":
        return await _handle_inspect(args, services)
    if args.command == "keys":
        return await _handle_keys(args, services)
    if args.command == "clear":
        return await _handle_clear(args, services)
    if args.command == "discover":
        return await _handle_discover(args, services, app_config)
    return 1


async def _run(args: argparse.Namespace) -> int:
    # Deferred: importing main configures logging and reads settings.
    from setlistscout.main import build_services, close_services, config

    services = build_services()
    try:
        return await dispatch(args, services, config)
    finally:
        await close_services(services)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the cache tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
