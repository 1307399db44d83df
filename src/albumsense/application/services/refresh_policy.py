"""Age-based staleness policy."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from albumsense.domain.entities import LibraryAlbum, ProviderState, RefreshStatus
from albumsense.domain.ports import IRefreshPolicy


class AgeBasedRefreshPolicy(IRefreshPolicy):
    """Refresh when the last completed attempt is older than a configured age.

    Albums Last.fm had no record of use the (usually shorter) not-found interval,
    so newly catalogued releases get picked up without hammering the service.
    """

    def __init__(
        self,
        refresh_interval: timedelta,
        not_found_retry_interval: timedelta | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.refresh_interval = refresh_interval
        self.not_found_retry_interval = (
            not_found_retry_interval
            if not_found_retry_interval is not None
            else refresh_interval
        )
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_days(
        cls, refresh_interval_days: int, not_found_retry_days: int
    ) -> "AgeBasedRefreshPolicy":
        return cls(
            refresh_interval=timedelta(days=refresh_interval_days),
            not_found_retry_interval=timedelta(days=not_found_retry_days),
        )

    def is_stale(self, album: LibraryAlbum, state: ProviderState) -> bool:
        if state.last_refreshed_at is None:
            return True

        interval = (
            self.not_found_retry_interval
            if state.last_refresh_status is RefreshStatus.NOT_FOUND
            else self.refresh_interval
        )
        return self._clock() - state.last_refreshed_at >= interval
