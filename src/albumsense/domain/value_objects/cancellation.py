"""Cooperative cancellation for refresh attempts."""

import asyncio

from albumsense.domain.exceptions import OperationCancelledError


class CancellationToken:
    """Signal shared by every step of one refresh attempt.

    Hey future me - asyncio task cancellation still works (nothing here swallows
    CancelledError), but the scheduler that drives providers hands us a token so
    it can stop an attempt without owning the task. Every network call and every
    file write checks it right before starting.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = ""

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "") -> None:
        """Request cancellation. Idempotent."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError(
                f"Operation was cancelled: {self._reason}"
                if self._reason
                else "Operation was cancelled"
            )

    async def wait(self) -> None:
        """Suspend until cancellation is requested."""
        await self._event.wait()


def raise_if_cancelled(token: CancellationToken | None) -> None:
    """Check an optional token."""
    if token is not None:
        token.raise_if_cancelled()
