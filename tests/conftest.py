"""Shared fixtures for albumsense tests."""

from collections.abc import Callable

import pytest

from albumsense.domain.entities import LibraryAlbum, LibraryFolder, LibraryTrack

TrackFactory = Callable[..., LibraryTrack]
AlbumFactory = Callable[..., LibraryAlbum]


def _make_track(
    album_artist: str | None = None,
    album: str | None = None,
    title: str = "Track",
    path: str = "",
) -> LibraryTrack:
    return LibraryTrack(
        path=path or f"/music/{album_artist}/{album}/{title}.flac",
        title=title,
        album=album,
        album_artist=album_artist,
    )


def _make_album(
    tracks: list[LibraryTrack] | None = None,
    name: str = "Abbey Road",
    parent_name: str = "The Beatles",
    path: str = "/music/The Beatles/Abbey Road",
    folders: list[LibraryFolder] | None = None,
) -> LibraryAlbum:
    return LibraryAlbum(
        name=name,
        path=path,
        parent_name=parent_name,
        tracks=tracks or [],
        folders=folders or [],
    )


@pytest.fixture
def make_track() -> TrackFactory:
    """Factory for library tracks: make_track(album_artist, album, title=...)."""
    return _make_track


@pytest.fixture
def make_album() -> AlbumFactory:
    """Factory for library albums: make_album(tracks, name=..., parent_name=...)."""
    return _make_album


@pytest.fixture
def abbey_road() -> LibraryAlbum:
    """Three tracks, all tagged The Beatles / Abbey Road."""
    return _make_album(
        tracks=[
            _make_track("The Beatles", "Abbey Road", title="Come Together"),
            _make_track("The Beatles", "Abbey Road", title="Something"),
            _make_track("The Beatles", "Abbey Road", title="Octopus's Garden"),
        ]
    )
