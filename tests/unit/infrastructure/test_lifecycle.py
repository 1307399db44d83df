"""Tests for provider wiring."""

import asyncio
from pathlib import Path

import httpx
import pytest
from pytest_httpx import HTTPXMock

from albumsense.config import Settings
from albumsense.config.settings import DatabaseSettings, LastfmSettings, MetadataSettings
from albumsense.domain.entities import RefreshStatus
from albumsense.infrastructure.lifecycle import (
    create_lastfm_album_provider,
    lastfm_album_provider_scope,
)
from albumsense.infrastructure.persistence import InMemoryProviderStateRepository
from albumsense.infrastructure.rate_limiter import ConcurrencyLimiter


def _settings(tmp_path: Path, max_concurrent: int = 3, **metadata) -> Settings:
    return Settings(
        lastfm=LastfmSettings(api_key="test-key", max_concurrent_requests=max_concurrent),
        metadata=MetadataSettings(**metadata),
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'state.db'}"),
    )


class TestCreateLastfmAlbumProvider:
    """Test the composition root."""

    @pytest.mark.asyncio
    async def test_clients_use_the_injected_limiter(self, tmp_path: Path) -> None:
        """Test that providers built for one scope share the limiter they are given."""
        settings = _settings(tmp_path)
        limiter = ConcurrencyLimiter.for_lastfm(3)

        _, first = create_lastfm_album_provider(
            settings, InMemoryProviderStateRepository(), limiter
        )
        _, second = create_lastfm_album_provider(
            settings, InMemoryProviderStateRepository(), limiter
        )

        assert first.limiter is second.limiter is limiter
        await first.close()
        await second.close()


class TestLastfmAlbumProviderScope:
    """Test the end-to-end refresh path with a real database and file system."""

    @pytest.mark.asyncio
    async def test_refresh_writes_file_and_state(
        self, tmp_path: Path, httpx_mock: HTTPXMock, make_album, make_track
    ) -> None:
        album_dir = tmp_path / "The Beatles" / "Abbey Road"
        album = make_album(
            tracks=[make_track("The Beatles", "Abbey Road")],
            path=str(album_dir),
        )
        httpx_mock.add_response(
            json={"album": {"name": "Abbey Road", "artist": "The Beatles", "mbid": "mbid-1"}}
        )

        async with lastfm_album_provider_scope(_settings(tmp_path)) as provider:
            outcome = await provider.refresh(album)
            second = await provider.refresh(album)
            state = await provider.get_state(album)

        assert outcome.status is RefreshStatus.FOUND
        assert second is None
        assert state.last_refresh_status is RefreshStatus.FOUND
        assert (album_dir / "lastfm_album.json").exists()
        assert album.musicbrainz_id == "mbid-1"

    def test_scope_survives_event_loop_restart(
        self, tmp_path: Path, httpx_mock: HTTPXMock, make_album, make_track
    ) -> None:
        """Test that contended requests work when the scope is entered under a new event loop."""

        async def slow_answer(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(0.01)
            return httpx.Response(
                200, json={"album": {"name": request.url.params["album"], "artist": "Air"}}
            )

        for _ in range(4):
            httpx_mock.add_callback(slow_answer)

        settings = _settings(tmp_path, max_concurrent=1, save_local_metadata=False)

        async def refresh_two_albums(run: int) -> list[RefreshStatus]:
            albums = [
                make_album(
                    tracks=[make_track("Air", title)],
                    name=title,
                    parent_name="Air",
                    path=str(tmp_path / f"run{run}" / title),
                )
                for title in ("Moon Safari", "Talkie Walkie")
            ]
            async with lastfm_album_provider_scope(settings) as provider:
                outcomes = await asyncio.gather(*(provider.fetch(a) for a in albums))
            return [outcome.status for outcome in outcomes]

        first_run = asyncio.run(refresh_two_albums(1))
        second_run = asyncio.run(refresh_two_albums(2))

        assert first_run == [RefreshStatus.FOUND, RefreshStatus.FOUND]
        assert second_run == [RefreshStatus.FOUND, RefreshStatus.FOUND]
        assert len(httpx_mock.get_requests()) == 4
