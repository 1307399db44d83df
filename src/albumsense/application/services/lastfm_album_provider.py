"""Last.fm album metadata provider.

Flow of one refresh attempt:

1. ``needs_refresh`` - fingerprint drift (only for albums without a MusicBrainz id),
   otherwise the general age-based policy.
2. ``fetch`` - walk the resolver's candidates one by one until Last.fm knows one,
   merge the result, optionally write the local JSON copy, then record the new
   fingerprint.

The provider state is written LAST and only when the attempt completed. Transport
errors, cancellation and local write failures all leave the previous record in place.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from albumsense.application.services.album_identity_resolver import (
    AlbumIdentityResolver,
)
from albumsense.application.services.album_metadata_merger import AlbumMetadataMerger
from albumsense.config import MetadataSettings
from albumsense.domain.dtos import LastfmAlbumInfo
from albumsense.domain.entities import LibraryAlbum, ProviderState, RefreshStatus
from albumsense.domain.exceptions import (
    ExternalServiceError,
    LocalMetadataWriteError,
    OperationCancelledError,
)
from albumsense.domain.ports import (
    ILastfmClient,
    ILibraryFileWriter,
    IMetadataSerializer,
    IProviderStateRepository,
    IRefreshPolicy,
)
from albumsense.domain.value_objects import (
    AlbumQuery,
    CancellationToken,
    raise_if_cancelled,
)
from albumsense.domain.value_objects.album_fingerprint import compute_album_fingerprint
from albumsense.infrastructure.observability.logging import correlation_scope

logger = logging.getLogger(__name__)


@dataclass
class RefreshOutcome:
    """Result of one completed refresh attempt."""

    album_key: str
    status: RefreshStatus
    fingerprint: str
    matched_query: AlbumQuery | None = None
    info: LastfmAlbumInfo | None = None
    candidates_tried: list[AlbumQuery] = field(default_factory=list)
    updated_fields: list[str] = field(default_factory=list)
    local_metadata_path: str | None = None

    @property
    def found(self) -> bool:
        return self.status is RefreshStatus.FOUND


class LastfmAlbumProvider:
    """Enriches library albums with Last.fm ``album.getInfo`` data."""

    PROVIDER_NAME = "lastfm_album"

    # Hey future me, this class holds NO per-album state - the scheduler calls it for many
    # albums at once. Everything album-specific lives in locals or in the state repository.
    def __init__(
        self,
        lastfm_client: ILastfmClient,
        state_repository: IProviderStateRepository,
        file_writer: ILibraryFileWriter,
        serializer: IMetadataSerializer,
        refresh_policy: IRefreshPolicy,
        settings: MetadataSettings,
        resolver: AlbumIdentityResolver | None = None,
        merger: AlbumMetadataMerger | None = None,
    ) -> None:
        self._lastfm_client = lastfm_client
        self._state_repository = state_repository
        self._file_writer = file_writer
        self._serializer = serializer
        self._refresh_policy = refresh_policy
        self._settings = settings
        self._resolver = resolver or AlbumIdentityResolver()
        self._merger = merger or AlbumMetadataMerger()

    async def get_state(self, album: LibraryAlbum) -> ProviderState | None:
        """Load this provider's state record for an album."""
        return await self._state_repository.get(album.key, self.PROVIDER_NAME)

    def needs_refresh(self, album: LibraryAlbum, state: ProviderState | None) -> bool:
        """Decide whether the album has to be refreshed.

        An album with a MusicBrainz id is considered identified; tag edits alone no
        longer trigger a refresh for it, only the general policy does.
        """
        if state is None:
            return True

        if not album.musicbrainz_id and compute_album_fingerprint(album) != state.fingerprint:
            logger.debug("Track tags of %s changed since last refresh", album.path)
            return True

        return self._refresh_policy.is_stale(album, state)

    async def find_album_info(
        self,
        album: LibraryAlbum,
        cancellation: CancellationToken | None = None,
    ) -> tuple[AlbumQuery | None, LastfmAlbumInfo | None, list[AlbumQuery]]:
        """Try candidates in order until Last.fm returns an album.

        Returns:
            (matched query, album info, every query that was tried)

        Raises:
            ExternalServiceError: A candidate failed with a transport error - the
                remaining candidates are NOT tried
        """
        tried: list[AlbumQuery] = []

        # Strictly sequential - never gather() these, first match must win
        for query in self._resolver.candidates(album):
            raise_if_cancelled(cancellation)
            tried.append(query)

            info = await self._lastfm_client.get_album_info(
                query.artist, query.album, cancellation
            )
            if info is not None:
                logger.debug(
                    "Last.fm match for %s via %s (%s)",
                    album.path,
                    query,
                    query.origin.value,
                )
                return query, info, tried

            logger.debug("Last.fm has no album for %s", query)

        return None, None, tried

    async def _save_local_metadata(
        self,
        album: LibraryAlbum,
        info: LastfmAlbumInfo,
        cancellation: CancellationToken | None,
    ) -> str:
        raise_if_cancelled(cancellation)
        path = str(Path(album.path) / self._settings.local_metadata_filename)
        data = self._serializer.serialize(info.raw)
        await self._file_writer.write(path, data, cancellation)
        return path

    async def fetch(
        self,
        album: LibraryAlbum,
        cancellation: CancellationToken | None = None,
    ) -> RefreshOutcome:
        """Run a refresh attempt regardless of staleness.

        Raises:
            ExternalServiceError: Last.fm could not be reached or answered garbage
            LocalMetadataWriteError: The local metadata copy could not be written
            OperationCancelledError: The token was cancelled
        """
        # Each attempt gets its own ID, even when one task refreshes many albums
        with correlation_scope():
            return await self._fetch(album, cancellation)

    async def _fetch(
        self,
        album: LibraryAlbum,
        cancellation: CancellationToken | None,
    ) -> RefreshOutcome:
        try:
            query, info, tried = await self.find_album_info(album, cancellation)

            updated_fields: list[str] = []
            local_path: str | None = None
            if info is not None:
                updated_fields = self._merger.apply(album, info)
                if self._settings.save_local_metadata:
                    local_path = await self._save_local_metadata(album, info, cancellation)

            status = RefreshStatus.FOUND if info is not None else RefreshStatus.NOT_FOUND
            fingerprint = compute_album_fingerprint(album)

            state = await self.get_state(album) or ProviderState(
                item_key=album.key, provider=self.PROVIDER_NAME
            )
            state.mark_refreshed(fingerprint, status)

            raise_if_cancelled(cancellation)
            await self._state_repository.upsert(state)
        except OperationCancelledError:
            logger.info("Last.fm refresh of %s cancelled, nothing stored", album.path)
            raise
        except ExternalServiceError as e:
            logger.warning("Last.fm refresh of %s aborted: %s", album.path, e.message)
            raise
        except LocalMetadataWriteError as e:
            logger.error("Last.fm refresh of %s not recorded: %s", album.path, e.message)
            raise

        logger.info(
            "Last.fm refresh of %s finished: %s after %d candidate(s)",
            album.path,
            status.value,
            len(tried),
        )
        return RefreshOutcome(
            album_key=album.key,
            status=status,
            fingerprint=fingerprint,
            matched_query=query,
            info=info,
            candidates_tried=tried,
            updated_fields=updated_fields,
            local_metadata_path=local_path,
        )

    async def refresh(
        self,
        album: LibraryAlbum,
        cancellation: CancellationToken | None = None,
    ) -> RefreshOutcome | None:
        """Refresh the album if it is stale.

        Returns:
            The outcome, or None when the album was up to date
        """
        state = await self.get_state(album)
        if not self.needs_refresh(album, state):
            logger.debug("Last.fm data for %s is current", album.path)
            return None
        return await self.fetch(album, cancellation)
