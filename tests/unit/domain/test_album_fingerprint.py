"""Tests for the album fingerprint."""

import hashlib
import itertools

from albumsense.domain.entities import LibraryFolder
from albumsense.domain.value_objects.album_fingerprint import (
    compute_album_fingerprint,
    fingerprint_tracks,
)


class TestFingerprintDeterminism:
    """Same tag set -> same fingerprint."""

    def test_track_order_does_not_matter(self, make_track) -> None:
        """Every permutation of the tracks yields the same digest."""
        tracks = [
            make_track("Pink Floyd", "Animals", title="Dogs"),
            make_track("pink floyd", "Animals", title="Pigs"),
            make_track("Roger Waters", "Animals", title="Sheep"),
            make_track(None, None, title="Untagged"),
        ]

        digests = {fingerprint_tracks(perm) for perm in itertools.permutations(tracks)}

        assert len(digests) == 1

    def test_digest_is_md5_of_sorted_values(self, make_track) -> None:
        """Values are normalized, sorted ordinally and concatenated without separator."""
        tracks = [
            make_track("The Beatles", "Abbey Road"),
            make_track("The Beatles", "Abbey Road"),
        ]

        expected = hashlib.md5("abbey roadthe beatles".encode("utf-8")).hexdigest()

        assert fingerprint_tracks(tracks) == expected
        assert len(fingerprint_tracks(tracks)) == 32

    def test_empty_album_has_stable_digest(self, make_album) -> None:
        """No tags at all hashes the empty string."""
        album = make_album(tracks=[])

        assert compute_album_fingerprint(album) == hashlib.md5(b"").hexdigest()

    def test_nested_disc_folders_are_included(self, make_album, make_track) -> None:
        """Tracks in CD1/CD2 folders count like direct tracks."""
        flat = make_album(
            tracks=[
                make_track("Prince", "Sign o' the Times"),
                make_track("Prince", "Sign o' the Times"),
            ]
        )
        nested = make_album(
            folders=[
                LibraryFolder(name="CD1", tracks=[make_track("Prince", "Sign o' the Times")]),
                LibraryFolder(
                    name="CD2",
                    folders=[
                        LibraryFolder(
                            name="Bonus", tracks=[make_track("Prince", "Sign o' the Times")]
                        )
                    ],
                ),
            ]
        )

        assert compute_album_fingerprint(flat) == compute_album_fingerprint(nested)


class TestFingerprintSensitivity:
    """Tag changes that matter change the digest, cosmetic ones don't."""

    def test_new_album_artist_changes_digest(self, make_track) -> None:
        before = [make_track("Daft Punk", "Discovery")]
        after = [make_track("Daft Punk", "Discovery"), make_track("Romanthony", "Discovery")]

        assert fingerprint_tracks(before) != fingerprint_tracks(after)

    def test_replaced_album_artist_changes_digest(self, make_track) -> None:
        before = [make_track("Daft Punk", "Discovery")]
        after = [make_track("Thomas Bangalter", "Discovery")]

        assert fingerprint_tracks(before) != fingerprint_tracks(after)

    def test_case_only_change_keeps_digest(self, make_track) -> None:
        before = [make_track("The Beatles", "Abbey Road")]
        after = [make_track("THE BEATLES", "abbey road")]

        assert fingerprint_tracks(before) == fingerprint_tracks(after)

    def test_surrounding_whitespace_is_ignored(self, make_track) -> None:
        before = [make_track("Björk", "Homogenic")]
        after = [make_track("  Björk ", "Homogenic\t")]

        assert fingerprint_tracks(before) == fingerprint_tracks(after)

    def test_blank_values_are_excluded(self, make_track) -> None:
        """Empty and whitespace-only tags don't contribute."""
        base = [make_track("Air", "Moon Safari")]
        with_blanks = base + [make_track("   ", ""), make_track(None, "  ")]

        assert fingerprint_tracks(base) == fingerprint_tracks(with_blanks)

    def test_album_title_is_part_of_digest(self, make_track) -> None:
        """Two albums by the same artist must not collide."""
        first = [make_track("Radiohead", "OK Computer")]
        second = [make_track("Radiohead", "Kid A")]

        assert fingerprint_tracks(first) != fingerprint_tracks(second)
