"""Setlist catalog providers (setlist.fm REST API)."""

from setlistscout.providers.setlist.setlistfm_provider import SetlistFmProvider

__all__ = ["SetlistFmProvider"]
