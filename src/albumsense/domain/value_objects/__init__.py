"""Domain value objects."""

from albumsense.domain.value_objects.album_query import AlbumQuery, QueryOrigin
from albumsense.domain.value_objects.cancellation import (
    CancellationToken,
    raise_if_cancelled,
)

__all__ = [
    "AlbumQuery",
    "CancellationToken",
    "QueryOrigin",
    "raise_if_cancelled",
]
