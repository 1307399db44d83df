"""Last.fm HTTP client implementation."""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

import httpx

from albumsense import __version__
from albumsense.config.settings import LastfmSettings
from albumsense.domain.dtos import LastfmAlbumInfo
from albumsense.domain.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    OperationCancelledError,
    RateLimitExceededError,
    ValidationError,
)
from albumsense.domain.ports import ILastfmClient
from albumsense.domain.value_objects import CancellationToken, raise_if_cancelled
from albumsense.infrastructure.rate_limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)

# Last.fm API error codes we treat specially
# https://www.last.fm/api/errorcodes
LASTFM_ERROR_NOT_FOUND = 6
LASTFM_ERROR_RATE_LIMITED = 29


class LastfmClient(ILastfmClient):
    """HTTP client for Last.fm API operations."""

    SERVICE_NAME = "lastfm"

    # Hey future me, the limiter is INJECTED and must be the process-wide one (see
    # infrastructure/lifecycle.py). The client itself has no class-level state, so two
    # clients with the same limiter share the same slot budget.
    def __init__(
        self,
        settings: LastfmSettings,
        limiter: ConcurrencyLimiter,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize Last.fm client.

        Args:
            settings: Last.fm configuration settings
            limiter: Shared pool bounding concurrent requests
            http_client: Optional externally owned httpx client

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not settings.is_configured:
            raise ConfigurationError("Last.fm API key not configured")

        self.settings = settings
        self.limiter = limiter
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.timeout,
                headers={"User-Agent": f"albumsense/{__version__}"},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client (only if we created it)."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # Yo, this races the request against the cancellation token. When the token fires first,
    # the request task is cancelled and awaited so no connection is left dangling, then we
    # raise OperationCancelledError. Native task cancellation passes straight through.
    @staticmethod
    async def _cancellable(
        request: Awaitable[httpx.Response], cancellation: CancellationToken | None
    ) -> httpx.Response:
        if cancellation is None:
            return await request

        request_task = asyncio.ensure_future(request)
        cancel_waiter = asyncio.ensure_future(cancellation.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_waiter.cancel()
            if not request_task.done():
                request_task.cancel()
                await asyncio.gather(request_task, return_exceptions=True)

        if request_task not in done:
            raise OperationCancelledError(
                f"Last.fm request cancelled: {cancellation.reason or 'no reason given'}"
            )
        return request_task.result()

    def _raise_for_api_error(self, data: dict[str, Any], status_code: int) -> None:
        """Map a Last.fm error payload to our exceptions. Error 6 is not an error."""
        error_code = data.get("error")
        message = data.get("message", "unknown error")

        if error_code == LASTFM_ERROR_NOT_FOUND:
            return
        if error_code == LASTFM_ERROR_RATE_LIMITED:
            raise RateLimitExceededError(
                f"Last.fm rate limit exceeded: {message}",
                service=self.SERVICE_NAME,
                status_code=status_code,
                error_code=error_code,
            )
        raise ExternalServiceError(
            f"Last.fm API error {error_code}: {message}",
            service=self.SERVICE_NAME,
            status_code=status_code,
            error_code=error_code if isinstance(error_code, int) else None,
        )

    async def _make_request(
        self,
        method: str,
        params: dict[str, Any],
        cancellation: CancellationToken | None = None,
    ) -> dict[str, Any] | None:
        """
        Make a request to Last.fm API.

        Args:
            method: API method name
            params: Request parameters
            cancellation: Token checked before the request goes out

        Returns:
            Response data or None if Last.fm reports "not found"

        Raises:
            ExternalServiceError: If the request fails or the body is unusable
            OperationCancelledError: If cancellation was requested
        """
        client = await self._get_client()

        request_params = {
            "method": method,
            **params,
            "api_key": self.settings.api_key,
            "format": "json",
        }

        async with self.limiter.slot(cancellation):
            raise_if_cancelled(cancellation)
            logger.debug(
                "Last.fm %s (%d/%d %s slots in use)",
                method,
                self.limiter.in_flight,
                self.limiter.config.max_concurrent,
                self.limiter.name,
            )
            try:
                # Last.fm occasionally serves broken gzip streams - ask for plain bodies
                response = await self._cancellable(
                    client.get(
                        self.settings.api_base_url,
                        params=request_params,
                        headers={"Accept-Encoding": "identity"},
                    ),
                    cancellation,
                )
            except httpx.TimeoutException as e:
                raise ExternalServiceError(
                    f"Last.fm request timed out: {e}", service=self.SERVICE_NAME
                ) from e
            except httpx.HTTPError as e:
                raise ExternalServiceError(
                    f"Last.fm request failed: {e}", service=self.SERVICE_NAME
                ) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and "error" in data:
            self._raise_for_api_error(data, response.status_code)
            return None

        if response.status_code == 429:
            raise RateLimitExceededError(
                "Last.fm rate limit exceeded",
                service=self.SERVICE_NAME,
                status_code=429,
            )
        # Only error 6 means "not found"; a bare 404 is a wrong base URL or a proxy
        if response.is_error:
            raise ExternalServiceError(
                f"Last.fm API error: {response.status_code} {response.reason_phrase}",
                service=self.SERVICE_NAME,
                status_code=response.status_code,
            )
        if not isinstance(data, dict):
            raise ExternalServiceError(
                "Last.fm returned a malformed response body",
                service=self.SERVICE_NAME,
                status_code=response.status_code,
            )

        return data

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
            cancellation: Token checked before the request goes out

        Returns:
            Album information or None if not found
        """
        params: dict[str, Any] = {"artist": artist, "album": album}
        if self.settings.autocorrect:
            params["autocorrect"] = 1

        response = await self._make_request("album.getInfo", params, cancellation)
        payload = response.get("album") if response else None
        if not isinstance(payload, dict):
            return None

        try:
            return LastfmAlbumInfo.from_api(payload)
        except ValidationError as e:
            logger.debug(
                "Ignoring unusable Last.fm album payload for %s - %s: %s",
                artist,
                album,
                e,
            )
            return None

    async def __aenter__(self) -> "LastfmClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
