"""Applies Last.fm album data to a library album."""

import html
import logging
import re
from datetime import UTC, datetime

from albumsense.domain.dtos import LastfmAlbumInfo
from albumsense.domain.entities import LibraryAlbum, ProviderIdKey

logger = logging.getLogger(__name__)

# Last.fm appends a link and a license notice to every wiki text
_READ_MORE_LINK = re.compile(r"\s*<a\s+href=[^>]*>\s*Read more on Last\.fm\s*</a>\.?", re.I)
_LICENSE_NOTICE = re.compile(
    r"\s*User-contributed text is available under the Creative Commons.*$", re.I | re.S
)
_HTML_TAG = re.compile(r"<[^>]+>")


def clean_wiki_text(text: str | None) -> str | None:
    """Strip Last.fm boilerplate and markup from a wiki summary/content."""
    if not text:
        return None
    cleaned = _READ_MORE_LINK.sub("", text)
    cleaned = _LICENSE_NOTICE.sub("", cleaned)
    cleaned = html.unescape(_HTML_TAG.sub("", cleaned)).strip()
    return cleaned or None


class AlbumMetadataMerger:
    """Copies descriptive fields from a Last.fm result onto the album entity.

    Only fields Last.fm actually delivered are touched - an empty wiki never
    wipes an overview that came from somewhere else.
    """

    def __init__(self, max_genres: int = 10) -> None:
        self.max_genres = max_genres

    def apply(self, album: LibraryAlbum, info: LastfmAlbumInfo) -> list[str]:
        """Merge ``info`` into ``album``.

        Returns:
            Names of the fields that were updated
        """
        updated: list[str] = []

        if info.mbid:
            album.set_provider_id(ProviderIdKey.MUSICBRAINZ_ALBUM, info.mbid)
            updated.append("musicbrainz_id")

        if info.url:
            album.set_provider_id(ProviderIdKey.LASTFM_URL, info.url)
            updated.append("lastfm_url")

        overview = clean_wiki_text(info.wiki_content) or clean_wiki_text(info.wiki_summary)
        if overview:
            album.overview = overview
            updated.append("overview")

        if info.release_date:
            album.release_date = info.release_date
            album.production_year = info.release_date.year
            updated.extend(["release_date", "production_year"])

        if info.tags:
            album.genres = info.tags[: self.max_genres]
            updated.append("genres")

        image_url = info.largest_image_url
        if image_url:
            album.image_url = image_url
            updated.append("image_url")

        if info.listeners is not None:
            album.listeners = info.listeners
            updated.append("listeners")

        if info.play_count is not None:
            album.play_count = info.play_count
            updated.append("play_count")

        if updated:
            album.updated_at = datetime.now(UTC)

        logger.debug("Merged Last.fm data into %s: %s", album.path, ", ".join(updated))
        return updated
