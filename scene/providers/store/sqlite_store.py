"""SQLite-backed artist store for local development and tests.

Mirrors the two backend tables in a local database at ``data/scene.db``.
Uses ``aiosqlite`` for async I/O.  Each row also stores a normalized key
column (see :func:`scene.utils.text_normalizer.name_key`) so matching is
case-insensitive for non-ASCII names too, which SQLite's NOCASE is not.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from scene.interfaces.artist_store import IArtistStore
from scene.models.artist import CanonicalArtist, ShowArtist
from scene.utils.errors import DatastoreError
from scene.utils.text_normalizer import name_key

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/scene.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS artists (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    name               TEXT    NOT NULL,
    name_key           TEXT    NOT NULL UNIQUE,
    image_url          TEXT,
    genres             TEXT    NOT NULL DEFAULT '[]',
    spotify_artist_id  TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS show_artists (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    show_id            TEXT,
    artist_name        TEXT    NOT NULL,
    artist_key         TEXT    NOT NULL,
    artist_image_url   TEXT,
    spotify_artist_id  TEXT,
    is_headliner       INTEGER NOT NULL DEFAULT 0
);
""",
    "CREATE INDEX IF NOT EXISTS idx_show_artists_key ON show_artists(artist_key);",
]

_UPSERT_ARTIST_SQL = """\
INSERT INTO artists (name, name_key, image_url, genres, spotify_artist_id)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(name_key)
DO UPDATE SET image_url         = excluded.image_url,
              spotify_artist_id = excluded.spotify_artist_id,
              genres            = excluded.genres
WHERE artists.image_url IS NULL;
"""

_SHOW_ARTIST_COLUMNS = "id, show_id, artist_name, artist_image_url, spotify_artist_id, is_headliner"


class SQLiteArtistStore(IArtistStore):
    """SQLite artist persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for sql in _CREATE_TABLES_SQL:
                await db.execute(sql)
            await db.commit()
        logger.info("artist_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Seeding helpers (development fixtures, tests)
    # ------------------------------------------------------------------

    async def add_show_artist(
        self,
        artist_name: str,
        artist_image_url: str | None = None,
        spotify_artist_id: str | None = None,
        is_headliner: bool = False,
        show_id: str | None = None,
    ) -> str:
        """Insert a show-artist row and return its id."""
        async with self._connect() as db:
            cursor = await db.execute(
                "INSERT INTO show_artists "
                "(show_id, artist_name, artist_key, artist_image_url, spotify_artist_id, is_headliner) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    show_id,
                    artist_name,
                    name_key(artist_name),
                    artist_image_url,
                    spotify_artist_id,
                    int(is_headliner),
                ),
            )
            await db.commit()
            return str(cursor.lastrowid)

    # ------------------------------------------------------------------
    # Canonical ``artists`` table
    # ------------------------------------------------------------------

    async def find_canonical_images(self, names: list[str]) -> list[CanonicalArtist]:
        keys = _keys(names)
        if not keys:
            return []
        placeholders = ", ".join("?" for _ in keys)
        rows = await self._fetch(
            f"SELECT id, name, image_url, genres, spotify_artist_id FROM artists "
            f"WHERE name_key IN ({placeholders}) AND image_url IS NOT NULL LIMIT ?",
            (*keys, len(names) * 2),
        )
        return [_to_canonical(r) for r in rows]

    async def search_artists(self, term: str, limit: int) -> list[CanonicalArtist]:
        key = name_key(term)
        if not key:
            return []
        pattern = "%" + key.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        rows = await self._fetch(
            "SELECT id, name, image_url, genres, spotify_artist_id FROM artists "
            "WHERE name_key LIKE ? ESCAPE '\\' ORDER BY name_key LIMIT ?",
            (pattern, limit),
        )
        return [_to_canonical(r) for r in rows]

    async def upsert_canonical_artist(
        self,
        name: str,
        image_url: str,
        spotify_id: str | None,
        genres: list[str],
    ) -> None:
        await self._execute(
            _UPSERT_ARTIST_SQL,
            (name.strip(), name_key(name), image_url, json.dumps(genres), spotify_id),
        )

    # ------------------------------------------------------------------
    # Per-show ``show_artists`` table
    # ------------------------------------------------------------------

    async def find_show_artist_images(self, names: list[str]) -> list[ShowArtist]:
        keys = _keys(names)
        if not keys:
            return []
        placeholders = ", ".join("?" for _ in keys)
        rows = await self._fetch(
            f"SELECT {_SHOW_ARTIST_COLUMNS} FROM show_artists "
            f"WHERE artist_key IN ({placeholders}) AND artist_image_url IS NOT NULL "
            f"ORDER BY is_headliner DESC, id LIMIT ?",
            (*keys, len(names) * 3),
        )
        return [_to_show_artist(r) for r in rows]

    async def update_show_artist_images(
        self,
        name: str,
        image_url: str,
        spotify_id: str | None,
    ) -> None:
        await self._execute(
            "UPDATE show_artists SET artist_image_url = ?, spotify_artist_id = ? "
            "WHERE artist_key = ? AND artist_image_url IS NULL",
            (image_url, spotify_id, name_key(name)),
        )

    async def list_show_artists_with_images(self, limit: int) -> list[ShowArtist]:
        rows = await self._fetch(
            f"SELECT {_SHOW_ARTIST_COLUMNS} FROM show_artists "
            f"WHERE artist_image_url IS NOT NULL ORDER BY id LIMIT ?",
            (limit,),
        )
        return [_to_show_artist(r) for r in rows]

    async def list_show_artists_missing_images(self, limit: int) -> list[ShowArtist]:
        rows = await self._fetch(
            f"SELECT {_SHOW_ARTIST_COLUMNS} FROM show_artists "
            f"WHERE artist_image_url IS NULL OR spotify_artist_id IS NULL ORDER BY id LIMIT ?",
            (limit,),
        )
        return [_to_show_artist(r) for r in rows]

    async def set_show_artist_image(
        self,
        row_id: str,
        image_url: str | None,
        spotify_id: str | None,
    ) -> None:
        await self._execute(
            "UPDATE show_artists SET artist_image_url = ?, spotify_artist_id = ? WHERE id = ?",
            (image_url, spotify_id, int(row_id)),
        )

    async def clear_show_artist_image(self, row_id: str) -> None:
        await self._execute(
            "UPDATE show_artists SET artist_image_url = NULL WHERE id = ?",
            (int(row_id),),
        )

    def get_provider_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(str(self._db_path))

    async def _fetch(self, sql: str, params: tuple[Any, ...]) -> list[aiosqlite.Row]:
        try:
            async with self._connect() as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                return list(await cursor.fetchall())
        except aiosqlite.Error as exc:
            raise DatastoreError(message=str(exc), provider_name=self.get_provider_name()) from exc

    async def _execute(self, sql: str, params: tuple[Any, ...]) -> None:
        try:
            async with self._connect() as db:
                await db.execute(sql, params)
                await db.commit()
        except aiosqlite.Error as exc:
            raise DatastoreError(message=str(exc), provider_name=self.get_provider_name()) from exc


def _keys(names: list[str]) -> list[str]:
    return sorted({name_key(n) for n in names if n.strip()})


def _to_canonical(row: aiosqlite.Row) -> CanonicalArtist:
    return CanonicalArtist(
        id=str(row["id"]),
        name=row["name"],
        image_url=row["image_url"],
        genres=json.loads(row["genres"] or "[]"),
        spotify_artist_id=row["spotify_artist_id"],
    )


def _to_show_artist(row: aiosqlite.Row) -> ShowArtist:
    return ShowArtist(
        id=str(row["id"]),
        show_id=row["show_id"],
        artist_name=row["artist_name"],
        artist_image_url=row["artist_image_url"],
        spotify_artist_id=row["spotify_artist_id"],
        is_headliner=bool(row["is_headliner"]),
    )
