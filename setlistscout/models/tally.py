"""Song-frequency tally models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SongTallyEntry(BaseModel):
    """Play count for one ``(attributed artist, song)`` key."""

    model_config = ConfigDict(frozen=True)

    song: str = Field(description="Song title as displayed.")
    artist: str = Field(
        description="Attributed artist: the covered artist for covers, else the primary artist.",
    )
    count: int = Field(ge=1, description="Number of shows the song was played in.")

    @property
    def key(self) -> str:
        return f"{self.artist}|{self.song}"


class SongTally(BaseModel):
    """Ordered tally for one pipeline run, most-played first."""

    model_config = ConfigDict(frozen=True)

    songs: list[SongTallyEntry] = Field(default_factory=list)
    total_shows_with_data: int = Field(
        default=0, description="Shows that listed at least one set section."
    )
    empty_setlist_count: int = Field(
        default=0, description="Shows skipped because no set sections were recorded."
    )

    def play_likelihood(self, entry: SongTallyEntry) -> float:
        """Percentage of shows with data that included *entry*, capped at 100."""
        if self.total_shows_with_data <= 0:
            return 0.0
        return min(100.0, entry.count / self.total_shows_with_data * 100.0)
