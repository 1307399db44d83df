"""Domain entities."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum


class ProviderIdKey(str, Enum):
    """Keys of ``LibraryAlbum.provider_ids``."""

    MUSICBRAINZ_ALBUM = "musicbrainz_album"
    LASTFM_URL = "lastfm_url"


# Hey future me - LibraryTrack is READ-ONLY for the enrichment pipeline! Tag values come
# straight from the scanner, so empty strings and whitespace garbage are normal here.
# Don't validate or normalize in __post_init__ - consumers (fingerprint, resolver) decide
# what counts as "empty".
@dataclass(frozen=True)
class LibraryTrack:
    """Audio file as seen by the library scanner."""

    path: str
    title: str = ""
    album: str | None = None
    album_artist: str | None = None


@dataclass
class LibraryFolder:
    """Sub-folder of an album (e.g. ``CD1``) that holds more tracks."""

    name: str
    tracks: list[LibraryTrack] = field(default_factory=list)
    folders: list["LibraryFolder"] = field(default_factory=list)

    def iter_tracks(self) -> Iterator[LibraryTrack]:
        """Yield own tracks first, then tracks of nested folders depth-first."""
        yield from self.tracks
        for folder in self.folders:
            yield from folder.iter_tracks()


@dataclass
class LibraryAlbum:
    """Album folder in the local library.

    Tracks and folder structure are owned by the library scanner; the
    enrichment pipeline reads them and writes only the metadata fields below
    ``provider_ids``.
    """

    name: str
    path: str
    parent_name: str = ""
    tracks: list[LibraryTrack] = field(default_factory=list)
    folders: list[LibraryFolder] = field(default_factory=list)
    provider_ids: dict[str, str] = field(default_factory=dict)
    overview: str | None = None
    release_date: date | None = None
    production_year: int | None = None
    genres: list[str] = field(default_factory=list)
    image_url: str | None = None
    listeners: int | None = None
    play_count: int | None = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> str:
        """Stable key used for provider state records."""
        return self.path

    @property
    def musicbrainz_id(self) -> str | None:
        value = self.provider_ids.get(ProviderIdKey.MUSICBRAINZ_ALBUM.value)
        return value or None

    def set_provider_id(self, key: ProviderIdKey, value: str | None) -> None:
        """Set or clear a provider id. Blank values clear the entry."""
        if value and value.strip():
            self.provider_ids[key.value] = value.strip()
        else:
            self.provider_ids.pop(key.value, None)

    def iter_tracks(self) -> Iterator[LibraryTrack]:
        """Yield every descendant track, including those in disc folders."""
        yield from self.tracks
        for folder in self.folders:
            yield from folder.iter_tracks()


class RefreshStatus(str, Enum):
    """Result of the last completed refresh attempt."""

    FOUND = "found"
    NOT_FOUND = "not_found"


# Listen up, ProviderState is ONLY written after an attempt completed (found or not found).
# Transport errors, cancellation and local write failures leave the previous record alone -
# otherwise an outage would look like "already checked" and the album would never be retried.
@dataclass
class ProviderState:
    """Per-album bookkeeping of one metadata provider."""

    item_key: str
    provider: str
    fingerprint: str = ""
    last_refreshed_at: datetime | None = None
    last_refresh_status: RefreshStatus | None = None

    def mark_refreshed(
        self, fingerprint: str, status: RefreshStatus, at: datetime | None = None
    ) -> None:
        """Record a completed refresh attempt."""
        self.fingerprint = fingerprint
        self.last_refresh_status = status
        self.last_refreshed_at = at or datetime.now(UTC)


__all__ = [
    "LibraryAlbum",
    "LibraryFolder",
    "LibraryTrack",
    "ProviderIdKey",
    "ProviderState",
    "RefreshStatus",
]
