"""Candidate (artist, album) queries sent to Last.fm."""

from dataclasses import dataclass
from enum import Enum


class QueryOrigin(str, Enum):
    """Where a candidate query was derived from."""

    TRACK_TAGS = "track_tags"
    FOLDER_NAME = "folder_name"


@dataclass(frozen=True)
class AlbumQuery:
    """One trial (artist, album title) pair."""

    artist: str
    album: str
    origin: QueryOrigin = QueryOrigin.TRACK_TAGS

    @property
    def is_fallback(self) -> bool:
        return self.origin is QueryOrigin.FOLDER_NAME

    def __str__(self) -> str:
        return f"{self.artist} - {self.album}"
