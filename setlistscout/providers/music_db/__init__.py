"""Music-database providers.

MusicBrainzProvider maps a streaming-service artist URL to a MusicBrainz id
so setlist searches can use ``artistMbid`` instead of a fuzzy name.
"""

from setlistscout.providers.music_db.musicbrainz_provider import MusicBrainzProvider

__all__ = ["MusicBrainzProvider"]
