"""Application services."""

from albumsense.application.services.album_identity_resolver import (
    AlbumIdentityResolver,
    iter_album_queries,
)
from albumsense.application.services.album_metadata_merger import AlbumMetadataMerger
from albumsense.application.services.lastfm_album_provider import (
    LastfmAlbumProvider,
    RefreshOutcome,
)
from albumsense.application.services.refresh_policy import AgeBasedRefreshPolicy

__all__ = [
    "AgeBasedRefreshPolicy",
    "AlbumIdentityResolver",
    "AlbumMetadataMerger",
    "LastfmAlbumProvider",
    "RefreshOutcome",
    "iter_album_queries",
]
