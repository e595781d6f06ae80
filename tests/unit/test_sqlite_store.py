"""Unit tests for SQLiteArtistStore (real database under tmp_path)."""

from __future__ import annotations

import pytest

from scene.providers.store.sqlite_store import SQLiteArtistStore


class TestCanonicalArtists:
    @pytest.mark.asyncio
    async def test_upsert_then_find_is_case_insensitive(self, sqlite_store: SQLiteArtistStore) -> None:
        await sqlite_store.upsert_canonical_artist(
            "Bicep", "https://i.scdn.co/image/bicep", "sp-bicep", ["electronic"]
        )
        rows = await sqlite_store.find_canonical_images(["BICEP", "  bicep "])

        assert len(rows) == 1
        assert rows[0].name == "Bicep"
        assert rows[0].genres == ["electronic"]
        assert rows[0].spotify_artist_id == "sp-bicep"

    @pytest.mark.asyncio
    async def test_upsert_never_replaces_existing_image(self, sqlite_store: SQLiteArtistStore) -> None:
        await sqlite_store.upsert_canonical_artist("Bicep", "https://i.scdn.co/image/first", "sp-1", [])
        await sqlite_store.upsert_canonical_artist("bicep", "https://i.scdn.co/image/second", "sp-2", [])

        rows = await sqlite_store.find_canonical_images(["Bicep"])
        assert [r.image_url for r in rows] == ["https://i.scdn.co/image/first"]

    @pytest.mark.asyncio
    async def test_search_is_substring_match(self, sqlite_store: SQLiteArtistStore) -> None:
        for name in ("Bicep", "Bic Runga", "Bonobo"):
            await sqlite_store.upsert_canonical_artist(name, f"https://img.example/{name}", None, [])

        rows = await sqlite_store.search_artists("BIC", 6)
        assert sorted(r.name for r in rows) == ["Bic Runga", "Bicep"]

        assert len(await sqlite_store.search_artists("b", 1)) == 1

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, sqlite_store: SQLiteArtistStore) -> None:
        await sqlite_store.upsert_canonical_artist("Bicep", "https://img.example/bicep", None, [])
        assert await sqlite_store.search_artists("%", 6) == []
        assert await sqlite_store.search_artists("b_cep", 6) == []

    @pytest.mark.asyncio
    async def test_blank_inputs_return_nothing(self, sqlite_store: SQLiteArtistStore) -> None:
        assert await sqlite_store.search_artists("   ", 6) == []
        assert await sqlite_store.find_canonical_images(["", " "]) == []


class TestShowArtists:
    @pytest.mark.asyncio
    async def test_headliner_rows_come_first(self, sqlite_store: SQLiteArtistStore) -> None:
        await sqlite_store.add_show_artist("Bicep", "https://i.scdn.co/image/support")
        await sqlite_store.add_show_artist("bicep", "https://i.scdn.co/image/headliner", is_headliner=True)
        await sqlite_store.add_show_artist("Bicep")

        rows = await sqlite_store.find_show_artist_images(["Bicep"])
        assert [r.artist_image_url for r in rows] == [
            "https://i.scdn.co/image/headliner",
            "https://i.scdn.co/image/support",
        ]

    @pytest.mark.asyncio
    async def test_update_by_name_only_fills_missing(self, sqlite_store: SQLiteArtistStore) -> None:
        await sqlite_store.add_show_artist("Bicep", "https://user.example/photo.jpg")
        await sqlite_store.add_show_artist("BICEP")

        await sqlite_store.update_show_artist_images("bicep", "https://i.scdn.co/image/bicep", "sp-bicep")

        rows = await sqlite_store.find_show_artist_images(["Bicep"])
        assert sorted(r.artist_image_url for r in rows) == [
            "https://i.scdn.co/image/bicep",
            "https://user.example/photo.jpg",
        ]

    @pytest.mark.asyncio
    async def test_missing_and_with_image_listings(self, sqlite_store: SQLiteArtistStore) -> None:
        with_image = await sqlite_store.add_show_artist("Bicep", "https://i.scdn.co/image/bicep", "sp-bicep")
        no_id = await sqlite_store.add_show_artist("Bonobo", "https://i.scdn.co/image/bonobo")
        bare = await sqlite_store.add_show_artist("Floating Points")

        missing = await sqlite_store.list_show_artists_missing_images(10)
        assert [r.id for r in missing] == [no_id, bare]

        with_images = await sqlite_store.list_show_artists_with_images(10)
        assert [r.id for r in with_images] == [with_image, no_id]

    @pytest.mark.asyncio
    async def test_set_and_clear_by_row_id(self, sqlite_store: SQLiteArtistStore) -> None:
        row_id = await sqlite_store.add_show_artist("Bicep")
        other = await sqlite_store.add_show_artist("Bicep")

        await sqlite_store.set_show_artist_image(row_id, "https://i.scdn.co/image/bicep", "sp-bicep")
        rows = await sqlite_store.find_show_artist_images(["Bicep"])
        assert [r.id for r in rows] == [row_id]

        await sqlite_store.clear_show_artist_image(row_id)
        assert await sqlite_store.find_show_artist_images(["Bicep"]) == []

        missing = await sqlite_store.list_show_artists_missing_images(10)
        assert {r.id for r in missing} == {row_id, other}

    def test_provider_name(self) -> None:
        assert SQLiteArtistStore(db_path="unused.db").get_provider_name() == "sqlite"
