"""Shared pytest fixtures for the Scene test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from scene.config.settings import Settings
from scene.interfaces.artist_image_provider import IArtistImageProvider
from scene.interfaces.artist_search_provider import IArtistSearchProvider
from scene.interfaces.artist_store import IArtistStore
from scene.interfaces.batch_image_provider import IBatchImageProvider
from scene.models.artist import RemoteSearchResponse
from scene.providers.store.sqlite_store import SQLiteArtistStore


class FakeClock:
    """Manually advanced clock for TTL and breaker tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Settings with test credentials and no .env influence."""
    return Settings(
        _env_file=None,
        spotify_client_id="test-client-id",
        spotify_client_secret="test-client-secret",
        datastore_backend="sqlite",
        musicbrainz_app_name="scene-test",
        musicbrainz_contact="test@test.com",
    )


# ---------------------------------------------------------------------------
# Interface doubles
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_store() -> MagicMock:
    """IArtistStore double; every query returns nothing by default."""
    store = MagicMock(spec=IArtistStore)
    store.find_canonical_images = AsyncMock(return_value=[])
    store.search_artists = AsyncMock(return_value=[])
    store.upsert_canonical_artist = AsyncMock(return_value=None)
    store.find_show_artist_images = AsyncMock(return_value=[])
    store.update_show_artist_images = AsyncMock(return_value=None)
    store.list_show_artists_with_images = AsyncMock(return_value=[])
    store.list_show_artists_missing_images = AsyncMock(return_value=[])
    store.set_show_artist_image = AsyncMock(return_value=None)
    store.clear_show_artist_image = AsyncMock(return_value=None)
    store.get_provider_name.return_value = "mock"
    return store


@pytest.fixture
def mock_batch_provider() -> MagicMock:
    provider = MagicMock(spec=IBatchImageProvider)
    provider.fetch_images = AsyncMock(return_value={})
    return provider


@pytest.fixture
def mock_image_provider() -> MagicMock:
    provider = MagicMock(spec=IArtistImageProvider)
    provider.search_artist = AsyncMock(return_value=None)
    provider.get_artist = AsyncMock(return_value=None)
    provider.get_provider_name.return_value = "spotify"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_remote_search() -> MagicMock:
    provider = MagicMock(spec=IArtistSearchProvider)
    provider.search_artists = AsyncMock(return_value=RemoteSearchResponse())
    provider.get_provider_name.return_value = "musicbrainz"
    return provider


# ---------------------------------------------------------------------------
# SQLite store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> SQLiteArtistStore:
    store = SQLiteArtistStore(db_path=tmp_path / "scene.db")
    await store.initialize()
    return store
