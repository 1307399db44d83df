"""Derives Last.fm lookup candidates for a local album.

Hey future me - ORDER MATTERS here! Track tags first (they were written by a tagger and
are usually right), then exactly one guess from the folder layout
(``<Artist>/<Album>/``). The generator is lazy on purpose: the provider stops pulling
as soon as one candidate matches, so the folder fallback is only ever produced when all
tag-derived candidates came back empty.
"""

from collections.abc import Iterator

from albumsense.domain.entities import LibraryAlbum
from albumsense.domain.value_objects import AlbumQuery, QueryOrigin


def _clean(value: str | None) -> str:
    return value.strip() if value else ""


def iter_track_queries(album: LibraryAlbum) -> Iterator[AlbumQuery]:
    """Yield distinct (album artist, album) pairs from track tags, first-seen order.

    Pairs are compared case-insensitively; pairs with an empty side are skipped.
    """
    seen: set[tuple[str, str]] = set()
    for track in album.iter_tracks():
        artist = _clean(track.album_artist)
        title = _clean(track.album)

        key = (artist.casefold(), title.casefold())
        if key in seen:
            continue
        seen.add(key)

        if artist and title:
            yield AlbumQuery(artist=artist, album=title, origin=QueryOrigin.TRACK_TAGS)


def folder_query(album: LibraryAlbum) -> AlbumQuery:
    """Guess (artist, album) from the parent folder and album folder names."""
    return AlbumQuery(
        artist=_clean(album.parent_name),
        album=_clean(album.name),
        origin=QueryOrigin.FOLDER_NAME,
    )


def iter_album_queries(album: LibraryAlbum) -> Iterator[AlbumQuery]:
    """Yield all candidates for an album: tag pairs, then the folder-name fallback.

    Each call re-reads the album's current tracks.
    """
    yield from iter_track_queries(album)
    yield folder_query(album)


class AlbumIdentityResolver:
    """Thin object wrapper so the provider can take the resolver as a dependency."""

    def candidates(self, album: LibraryAlbum) -> Iterator[AlbumQuery]:
        return iter_album_queries(album)
