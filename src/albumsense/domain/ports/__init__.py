"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from typing import Any

from albumsense.domain.dtos import LastfmAlbumInfo
from albumsense.domain.entities import LibraryAlbum, ProviderState
from albumsense.domain.value_objects import CancellationToken


class ILastfmClient(ABC):
    """Port for Last.fm API client operations."""

    @abstractmethod
    async def get_album_info(
        self,
        artist: str,
        album: str,
        cancellation: CancellationToken | None = None,
    ) -> LastfmAlbumInfo | None:
        """
        Get album information by artist and album title.

        Args:
            artist: Album artist name
            album: Album title
            cancellation: Token checked before the request is sent

        Returns:
            Album information or None if Last.fm has no such album

        Raises:
            ExternalServiceError: On transport failures
            OperationCancelledError: If cancellation was requested
        """
        pass


# Hey future me, this is keyed by (item_key, provider) - NOT a free-form dict on the album!
# One record per album per provider. upsert() overwrites; the core never deletes records.
class IProviderStateRepository(ABC):
    """Repository interface for per-item provider state."""

    @abstractmethod
    async def get(self, item_key: str, provider: str) -> ProviderState | None:
        """Get the state record, or None if the provider never completed a refresh."""
        pass

    @abstractmethod
    async def upsert(self, state: ProviderState) -> None:
        """Create or overwrite the state record."""
        pass


class ILibraryFileWriter(ABC):
    """Port for writing files into the media library."""

    @abstractmethod
    async def write(
        self,
        path: str,
        data: bytes,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """
        Write (or overwrite) a file.

        Implementations must never leave a partially written file behind.

        Raises:
            LocalMetadataWriteError: If the file can't be written
            OperationCancelledError: If cancellation was requested
        """
        pass


class IMetadataSerializer(ABC):
    """Port for (de)serializing metadata payloads."""

    @abstractmethod
    def serialize(self, obj: Any) -> bytes:
        """Serialize an object to bytes."""
        pass

    @abstractmethod
    def deserialize(self, data: bytes) -> Any:
        """Deserialize bytes produced by serialize()."""
        pass


class IRefreshPolicy(ABC):
    """General staleness policy, independent of any provider."""

    @abstractmethod
    def is_stale(self, album: LibraryAlbum, state: ProviderState) -> bool:
        """Check whether the stored state is old enough to refresh again."""
        pass


__all__ = [
    "ILastfmClient",
    "ILibraryFileWriter",
    "IMetadataSerializer",
    "IProviderStateRepository",
    "IRefreshPolicy",
]
