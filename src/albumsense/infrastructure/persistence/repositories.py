"""Repository implementations for provider state."""

import logging
from dataclasses import replace

from sqlalchemy import select

from albumsense.domain.entities import ProviderState, RefreshStatus
from albumsense.domain.ports import IProviderStateRepository

from .database import Database
from .models import ProviderStateModel, ensure_utc_aware

logger = logging.getLogger(__name__)


class InMemoryProviderStateRepository(IProviderStateRepository):
    """Dict-backed store for tests and one-shot runs.

    Returns copies, so mutating a fetched record does nothing until upsert().
    """

    def __init__(self) -> None:
        self._states: dict[tuple[str, str], ProviderState] = {}

    async def get(self, item_key: str, provider: str) -> ProviderState | None:
        state = self._states.get((item_key, provider))
        return replace(state) if state else None

    async def upsert(self, state: ProviderState) -> None:
        self._states[(state.item_key, state.provider)] = replace(state)

    def __len__(self) -> int:
        return len(self._states)


class SqlAlchemyProviderStateRepository(IProviderStateRepository):
    """SQLAlchemy-backed provider state store.

    Each call runs in its own transaction: upsert() is committed on return.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    @staticmethod
    def _to_entity(model: ProviderStateModel) -> ProviderState:
        return ProviderState(
            item_key=model.item_key,
            provider=model.provider,
            fingerprint=model.fingerprint,
            last_refreshed_at=(
                ensure_utc_aware(model.last_refreshed_at)
                if model.last_refreshed_at
                else None
            ),
            last_refresh_status=(
                RefreshStatus(model.last_refresh_status)
                if model.last_refresh_status
                else None
            ),
        )

    async def get(self, item_key: str, provider: str) -> ProviderState | None:
        async with self.database.session_scope() as session:
            stmt = select(ProviderStateModel).where(
                ProviderStateModel.item_key == item_key,
                ProviderStateModel.provider == provider,
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return self._to_entity(model) if model else None

    async def upsert(self, state: ProviderState) -> None:
        async with self.database.session_scope() as session:
            stmt = select(ProviderStateModel).where(
                ProviderStateModel.item_key == state.item_key,
                ProviderStateModel.provider == state.provider,
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()

            if model is None:
                model = ProviderStateModel(
                    item_key=state.item_key, provider=state.provider
                )
                session.add(model)

            model.fingerprint = state.fingerprint
            model.last_refreshed_at = state.last_refreshed_at
            model.last_refresh_status = (
                state.last_refresh_status.value if state.last_refresh_status else None
            )

        logger.debug(
            "Stored %s state for %s (fingerprint=%s)",
            state.provider,
            state.item_key,
            state.fingerprint,
        )
