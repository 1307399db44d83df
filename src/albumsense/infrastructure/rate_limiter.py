"""
Shared concurrency limiter for outbound Last.fm requests.

Hey future me – this caps how many Last.fm requests are IN FLIGHT at once, across
every album being refreshed in parallel. It's a counting semaphore, not a token bucket:
Last.fm complains about bursts of simultaneous connections from one API key far more
than about steady traffic.

WHY ONE INSTANCE PER SCOPE?
- Every LastfmClient gets the limiter injected (no hidden globals anywhere)
- The composition root (lifecycle.py) builds ONE limiter per provider scope and hands
  it to every client it creates. Two limiters = twice the allowed concurrency = 429s
- The limiter wraps an asyncio.Semaphore, which binds to the event loop it first waits
  on. Never keep one around after its loop is gone; build a new one per scope.

USAGE:
    limiter = ConcurrencyLimiter(ConcurrencyLimiterConfig(max_concurrent=4))

    async with limiter.slot(cancellation):
        response = await client.get(url)
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from albumsense.domain.value_objects import CancellationToken, raise_if_cancelled

logger = logging.getLogger(__name__)


@dataclass
class ConcurrencyLimiterConfig:
    """Configuration for the concurrency limiter."""

    max_concurrent: int = 4
    name: str = "default"

    def __post_init__(self) -> None:
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")


@dataclass
class ConcurrencyLimiter:
    """Bounded pool of request slots.

    Attributes:
        config: Limiter configuration
        _semaphore: Slot counter
        _in_flight: Slots currently held
        _peak_in_flight: Highest number of slots held at the same time
    """

    config: ConcurrencyLimiterConfig = field(default_factory=ConcurrencyLimiterConfig)

    _semaphore: asyncio.Semaphore = field(init=False)
    _in_flight: int = field(default=0, init=False)
    _peak_in_flight: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self._semaphore = asyncio.Semaphore(self.config.max_concurrent)

    @classmethod
    def for_lastfm(cls, max_concurrent: int = 4) -> "ConcurrencyLimiter":
        """Create a limiter for the Last.fm web service."""
        return cls(
            config=ConcurrencyLimiterConfig(max_concurrent=max_concurrent, name="lastfm")
        )

    async def acquire(self, cancellation: CancellationToken | None = None) -> None:
        """Wait for a free slot.

        The token is checked before waiting and again once a slot was obtained;
        a cancelled caller never keeps a slot.
        """
        raise_if_cancelled(cancellation)
        if self._semaphore.locked():
            logger.debug(
                "ConcurrencyLimiter[%s]: all %d slots busy, waiting",
                self.name,
                self.config.max_concurrent,
            )
        await self._semaphore.acquire()
        try:
            raise_if_cancelled(cancellation)
        except BaseException:
            self._semaphore.release()
            raise

        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)

    def release(self) -> None:
        """Return a slot to the pool."""
        self._in_flight -= 1
        self._semaphore.release()

    @asynccontextmanager
    async def slot(
        self, cancellation: CancellationToken | None = None
    ) -> AsyncIterator[None]:
        """Hold one slot for the duration of the block.

        Usage:
            async with limiter.slot(token):
                response = await client.get(url)
        """
        await self.acquire(cancellation)
        try:
            yield
        finally:
            self.release()

    async def __aenter__(self) -> "ConcurrencyLimiter":
        """Enter async context - acquire a slot."""
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        """Exit async context - release the slot."""
        self.release()

    @property
    def in_flight(self) -> int:
        """Slots currently held (for debugging and tests)."""
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest concurrent slot usage seen so far."""
        return self._peak_in_flight

    @property
    def name(self) -> str:
        """Get limiter name for logging."""
        return self.config.name


__all__ = [
    "ConcurrencyLimiter",
    "ConcurrencyLimiterConfig",
]
