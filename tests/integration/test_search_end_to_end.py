"""End-to-end search: real SQLite store, real cache, MusicBrainz patched at the library."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import musicbrainzngs
import pytest
import pytest_asyncio

from scene.config.settings import Settings
from scene.models.search import SearchSnapshot, SearchState
from scene.providers.cache.memory_cache import MemoryCacheProvider
from scene.providers.search.musicbrainz_provider import MusicBrainzSearchProvider
from scene.providers.store.sqlite_store import SQLiteArtistStore
from scene.services.artist_search import ArtistSearchSession


@pytest_asyncio.fixture
async def seeded_store(sqlite_store: SQLiteArtistStore) -> SQLiteArtistStore:
    await sqlite_store.upsert_canonical_artist(
        "Bicep", "https://i.scdn.co/image/bicep", "sp-bicep", ["electronic", "uk bass", "house"]
    )
    await sqlite_store.upsert_canonical_artist("Bic Runga", "https://i.scdn.co/image/bic-runga", None, ["nz pop"])
    return sqlite_store


def _session(
    store: SQLiteArtistStore,
    settings: Settings,
    snapshots: list[SearchSnapshot],
    sufficient_local: int,
) -> ArtistSearchSession:
    return ArtistSearchSession(
        store=store,
        remote=MusicBrainzSearchProvider(settings=settings),
        result_cache=MemoryCacheProvider(max_size=100, ttl=300, name="artist_search"),
        debounce_ms=10,
        sufficient_local=sufficient_local,
        on_change=snapshots.append,
    )


class TestSearchEndToEnd:
    @pytest.mark.asyncio
    async def test_local_matches_resolve_without_remote(
        self, seeded_store: SQLiteArtistStore, settings: Settings
    ) -> None:
        snapshots: list[SearchSnapshot] = []
        session = _session(seeded_store, settings, snapshots, sufficient_local=2)

        with patch.object(musicbrainzngs, "search_artists", MagicMock()) as remote:
            session.set_term("Bic")
            await session.wait_settled()

        assert session.state is SearchState.RESOLVED
        assert sorted(r.name for r in session.results) == ["Bic Runga", "Bicep"]
        bicep = next(r for r in session.results if r.name == "Bicep")
        assert bicep.id == "sp-bicep"
        assert bicep.genres == ["electronic", "uk bass"]
        remote.assert_not_called()

        states = [s.state for s in snapshots]
        assert states[0] is SearchState.DEBOUNCING
        assert states[-1] is SearchState.RESOLVED
        assert snapshots[-1].is_searching is False
        await session.close()

    @pytest.mark.asyncio
    async def test_unknown_artist_hits_remote_once_and_resolves_empty(
        self, seeded_store: SQLiteArtistStore, settings: Settings
    ) -> None:
        snapshots: list[SearchSnapshot] = []
        session = _session(seeded_store, settings, snapshots, sufficient_local=3)
        not_found = musicbrainzngs.ResponseError(cause=SimpleNamespace(code=404))

        with patch.object(musicbrainzngs, "search_artists", MagicMock(side_effect=not_found)) as remote:
            session.set_term("Zzzznotreal")
            await session.wait_settled()

        remote.assert_called_once_with(artist="Zzzznotreal", limit=6)
        assert session.state is SearchState.RESOLVED
        assert session.results == []
        assert session.remote_unavailable is False
        await session.close()

    @pytest.mark.asyncio
    async def test_thin_local_results_are_topped_up_from_remote(
        self, seeded_store: SQLiteArtistStore, settings: Settings
    ) -> None:
        session = _session(seeded_store, settings, [], sufficient_local=3)
        remote_rows = {
            "artist-list": [
                {"id": "mbid-bicep", "name": "BICEP", "disambiguation": "UK electronic duo"},
                {"id": "mbid-bicycle", "name": "Bicycle Day", "country": "US"},
            ]
        }

        with patch.object(musicbrainzngs, "search_artists", MagicMock(return_value=remote_rows)):
            session.set_term("Bic")
            await session.wait_settled()

        names = [r.name for r in session.results]
        assert sorted(names[:2]) == ["Bic Runga", "Bicep"]
        assert names[2:] == ["Bicycle Day"]
        await session.close()
