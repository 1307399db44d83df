"""Tests for provider state repositories."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime

import pytest

from albumsense.config import DatabaseSettings
from albumsense.domain.entities import ProviderState, RefreshStatus
from albumsense.infrastructure.persistence import (
    Database,
    InMemoryProviderStateRepository,
    SqlAlchemyProviderStateRepository,
)


@pytest.fixture
async def database() -> AsyncIterator[Database]:
    """In-memory SQLite database with tables created."""
    db = Database(DatabaseSettings(url="sqlite+aiosqlite:///:memory:"))
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture(params=["memory", "sqlalchemy"])
def repository(request, database):
    if request.param == "memory":
        return InMemoryProviderStateRepository()
    return SqlAlchemyProviderStateRepository(database)


def _state(**overrides) -> ProviderState:
    values = {
        "item_key": "/music/The Beatles/Abbey Road",
        "provider": "lastfm_album",
        "fingerprint": "d41d8cd98f00b204e9800998ecf8427e",
        "last_refreshed_at": datetime(2024, 5, 1, 8, 30, tzinfo=UTC),
        "last_refresh_status": RefreshStatus.FOUND,
    }
    values.update(overrides)
    return ProviderState(**values)


class TestProviderStateRepository:
    """Behaviour shared by both repository implementations."""

    @pytest.mark.asyncio
    async def test_get_missing(self, repository) -> None:
        assert await repository.get("/music/none", "lastfm_album") is None

    @pytest.mark.asyncio
    async def test_upsert_then_get(self, repository) -> None:
        await repository.upsert(_state())

        stored = await repository.get("/music/The Beatles/Abbey Road", "lastfm_album")

        assert stored == _state()

    @pytest.mark.asyncio
    async def test_upsert_overwrites(self, repository) -> None:
        await repository.upsert(_state())
        await repository.upsert(
            _state(
                fingerprint="0cc175b9c0f1b6a831c399e269772661",
                last_refresh_status=RefreshStatus.NOT_FOUND,
            )
        )

        stored = await repository.get("/music/The Beatles/Abbey Road", "lastfm_album")

        assert stored.fingerprint == "0cc175b9c0f1b6a831c399e269772661"
        assert stored.last_refresh_status is RefreshStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_providers_are_separate(self, repository) -> None:
        await repository.upsert(_state())

        assert await repository.get("/music/The Beatles/Abbey Road", "musicbrainz") is None

    @pytest.mark.asyncio
    async def test_returned_state_is_a_copy(self, repository) -> None:
        """Test that mutating a loaded record doesn't persist without upsert."""
        await repository.upsert(_state())
        loaded = await repository.get("/music/The Beatles/Abbey Road", "lastfm_album")
        loaded.fingerprint = "changed"

        reloaded = await repository.get("/music/The Beatles/Abbey Road", "lastfm_album")

        assert reloaded.fingerprint == "d41d8cd98f00b204e9800998ecf8427e"

    @pytest.mark.asyncio
    async def test_state_without_refresh(self, repository) -> None:
        await repository.upsert(_state(last_refreshed_at=None, last_refresh_status=None))

        stored = await repository.get("/music/The Beatles/Abbey Road", "lastfm_album")

        assert stored.last_refreshed_at is None
        assert stored.last_refresh_status is None


class TestSqlAlchemyProviderStateRepository:
    """SQLite specifics."""

    @pytest.mark.asyncio
    async def test_datetimes_come_back_utc_aware(self, database: Database) -> None:
        repository = SqlAlchemyProviderStateRepository(database)
        await repository.upsert(_state())

        stored = await repository.get("/music/The Beatles/Abbey Road", "lastfm_album")

        assert stored.last_refreshed_at.tzinfo is not None
        assert stored.last_refreshed_at == datetime(2024, 5, 1, 8, 30, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_failed_transaction_is_rolled_back(self, database: Database) -> None:
        repository = SqlAlchemyProviderStateRepository(database)

        with pytest.raises(RuntimeError):
            async with database.session_scope() as session:
                from albumsense.infrastructure.persistence.models import (
                    ProviderStateModel,
                )

                session.add(
                    ProviderStateModel(
                        item_key="/music/x", provider="lastfm_album", fingerprint="abc"
                    )
                )
                await session.flush()
                raise RuntimeError("cancelled mid-commit")

        assert await repository.get("/music/x", "lastfm_album") is None
