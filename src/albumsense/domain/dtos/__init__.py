"""Data transfer objects for external metadata services.

Hey future me - Last.fm JSON is LOOSE: numbers arrive as strings, single-element lists
sometimes arrive as a bare object, and empty collections arrive as "" instead of [].
Everything that parses the payload goes through the _as_list / _as_int helpers below so
the rest of the code sees clean Python types.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from albumsense.domain.exceptions import ValidationError

# Last.fm image sizes from smallest to largest
LASTFM_IMAGE_SIZES: tuple[str, ...] = (
    "small",
    "medium",
    "large",
    "extralarge",
    "mega",
)

_RELEASE_DATE_FORMATS: tuple[str, ...] = (
    "%d %b %Y, %H:%M",
    "%d %b %Y",
    "%Y-%m-%d",
)


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_lastfm_date(value: str | None) -> date | None:
    """Parse the date formats Last.fm uses (``"26 Sep 1969, 00:00"``)."""
    if not value or not value.strip():
        return None
    text = value.strip()
    for fmt in _RELEASE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


@dataclass
class LastfmAlbumInfo:
    """Album payload returned by Last.fm ``album.getInfo``.

    ``raw`` keeps the untouched ``album`` object so it can be written as the
    local metadata copy.
    """

    name: str
    artist: str
    mbid: str | None = None
    url: str | None = None
    release_date: date | None = None
    listeners: int | None = None
    play_count: int | None = None
    tags: list[str] = field(default_factory=list)
    images: dict[str, str] = field(default_factory=dict)
    wiki_summary: str | None = None
    wiki_content: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "LastfmAlbumInfo":
        """Build from the ``album`` object of an ``album.getInfo`` response.

        Raises:
            ValidationError: If the payload has no album name
        """
        name = _as_str(payload.get("name"))
        if name is None:
            raise ValidationError("Last.fm album payload has no name")

        artist_field = payload.get("artist")
        if isinstance(artist_field, dict):
            artist = _as_str(artist_field.get("name")) or ""
        else:
            artist = _as_str(artist_field) or ""

        images: dict[str, str] = {}
        for image in _as_list(payload.get("image")):
            if not isinstance(image, dict):
                continue
            url = _as_str(image.get("#text"))
            size = _as_str(image.get("size"))
            if url and size:
                images[size] = url

        tags: list[str] = []
        tags_field = payload.get("tags")
        if isinstance(tags_field, dict):
            for tag in _as_list(tags_field.get("tag")):
                tag_name = _as_str(tag.get("name")) if isinstance(tag, dict) else None
                if tag_name and tag_name not in tags:
                    tags.append(tag_name)

        wiki = payload.get("wiki")
        wiki_summary = wiki_content = None
        if isinstance(wiki, dict):
            wiki_summary = _as_str(wiki.get("summary"))
            wiki_content = _as_str(wiki.get("content"))

        return cls(
            name=name,
            artist=artist,
            mbid=_as_str(payload.get("mbid")),
            url=_as_str(payload.get("url")),
            release_date=parse_lastfm_date(_as_str(payload.get("releasedate"))),
            listeners=_as_int(payload.get("listeners")),
            play_count=_as_int(payload.get("playcount")),
            tags=tags,
            images=images,
            wiki_summary=wiki_summary,
            wiki_content=wiki_content,
            raw=payload,
        )

    @property
    def largest_image_url(self) -> str | None:
        """URL of the biggest image Last.fm offered, if any."""
        for size in reversed(LASTFM_IMAGE_SIZES):
            if size in self.images:
                return self.images[size]
        # Unknown size labels - take whatever is there
        return next(iter(self.images.values()), None)


__all__ = [
    "LASTFM_IMAGE_SIZES",
    "LastfmAlbumInfo",
    "parse_lastfm_date",
]
