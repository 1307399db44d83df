"""Album fingerprint used to detect track tag changes between refreshes.

The fingerprint is an MD5 digest over the distinct album-artist and album-title
tag values of every track below an album. It is stored in the provider state
record after each completed refresh; when it drifts, the album is refreshed
again (unless it already carries a MusicBrainz id).

Values are trimmed and case-folded before de-duplication, then sorted
ordinally and concatenated without separator. Track order therefore never
affects the digest, and neither does "The Beatles" vs "the beatles".
"""

import hashlib
from collections.abc import Iterable

from albumsense.domain.entities import LibraryAlbum, LibraryTrack


def _distinct_values(values: Iterable[str | None]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        if value is None:
            continue
        normalized = value.strip().casefold()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def fingerprint_tracks(tracks: Iterable[LibraryTrack]) -> str:
    """Compute the fingerprint for a set of tracks."""
    track_list = list(tracks)

    album_artists = _distinct_values(track.album_artist for track in track_list)
    album_titles = _distinct_values(track.album for track in track_list)

    # sorted() on str is ordinal code-point order, no locale involved
    combined = sorted(album_artists + album_titles)

    # MD5 is a change detector here, not a security primitive
    return hashlib.md5(  # nosec B324
        "".join(combined).encode("utf-8"), usedforsecurity=False
    ).hexdigest()


def compute_album_fingerprint(album: LibraryAlbum) -> str:
    """Compute the fingerprint over all descendant tracks of an album."""
    return fingerprint_tracks(album.iter_tracks())
