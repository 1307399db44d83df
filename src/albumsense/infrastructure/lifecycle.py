"""Composition root - wires the Last.fm album provider from settings."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from albumsense.application.services import (
    AgeBasedRefreshPolicy,
    LastfmAlbumProvider,
)
from albumsense.config import Settings, get_settings
from albumsense.domain.ports import IProviderStateRepository
from albumsense.infrastructure.integrations.lastfm_client import LastfmClient
from albumsense.infrastructure.library_files import LocalLibraryFileWriter
from albumsense.infrastructure.observability.logging import configure_logging
from albumsense.infrastructure.persistence import (
    Database,
    SqlAlchemyProviderStateRepository,
)
from albumsense.infrastructure.rate_limiter import ConcurrencyLimiter
from albumsense.infrastructure.serialization import JsonMetadataSerializer

logger = logging.getLogger(__name__)


def create_lastfm_album_provider(
    settings: Settings,
    state_repository: IProviderStateRepository,
    limiter: ConcurrencyLimiter,
    http_client: httpx.AsyncClient | None = None,
) -> tuple[LastfmAlbumProvider, LastfmClient]:
    """Build a provider and the client it uses.

    Every provider created for the same scope must get the same ``limiter``.
    The caller owns the returned client and must close it.
    """
    client = LastfmClient(
        settings.lastfm,
        limiter=limiter,
        http_client=http_client,
    )
    provider = LastfmAlbumProvider(
        lastfm_client=client,
        state_repository=state_repository,
        file_writer=LocalLibraryFileWriter(),
        serializer=JsonMetadataSerializer(),
        refresh_policy=AgeBasedRefreshPolicy.from_days(
            settings.metadata.refresh_interval_days,
            settings.metadata.not_found_retry_days,
        ),
        settings=settings.metadata,
    )
    return provider, client


@asynccontextmanager
async def lastfm_album_provider_scope(
    settings: Settings | None = None,
    setup_logging: bool = False,
) -> AsyncIterator[LastfmAlbumProvider]:
    """Provider backed by the configured database; closes everything on exit.

    Usage:
        async with lastfm_album_provider_scope() as provider:
            await provider.refresh(album, token)
    """
    settings = settings or get_settings()
    if setup_logging:
        configure_logging(
            log_level=settings.log_level,
            json_format=settings.observability.log_json_format,
            app_name=settings.app_name,
        )

    database = Database(settings.database)
    await database.create_tables()

    # One pool per scope - its semaphore belongs to the event loop running this scope
    limiter = ConcurrencyLimiter.for_lastfm(settings.lastfm.max_concurrent_requests)
    provider, client = create_lastfm_album_provider(
        settings, SqlAlchemyProviderStateRepository(database), limiter
    )
    logger.info(
        "Last.fm album provider ready (max %d concurrent requests, local copy: %s)",
        settings.lastfm.max_concurrent_requests,
        settings.metadata.save_local_metadata,
    )
    try:
        yield provider
    finally:
        await client.close()
        await database.close()
