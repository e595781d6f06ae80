"""Supabase (PostgREST) artist store implementing IArtistStore.

Talks to the backend's auto-generated REST API directly with httpx, using
the service-role key.  Case-insensitive exact matching is done with
PostgREST ``ilike`` filters; several names are combined into one request
with an ``or=(...)`` filter.

# ─── POSTGREST FILTER CHEAT SHEET ────────────────────────────────────
#
#   name=ilike.*bic*                 substring, case-insensitive
#   or=(name.ilike."Bicep",name.ilike."Bonobo")
#   image_url=not.is.null            has an image
#   order=is_headliner.desc          headliners first
#
# Values inside or=(...) are double-quoted so commas, dots and parens
# in artist names ("Crosby, Stills & Nash") do not break the filter.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

import httpx

from scene.interfaces.artist_store import IArtistStore
from scene.models.artist import CanonicalArtist, ShowArtist
from scene.utils.errors import DatastoreError
from scene.utils.logging import get_logger
from scene.utils.text_normalizer import strip_like_wildcards

_SHOW_ARTIST_COLUMNS = "id,show_id,artist_name,artist_image_url,spotify_artist_id,is_headliner"


def _quote(value: str) -> str:
    """Double-quote a value for use inside a PostgREST ``or`` filter."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _ilike_any(column: str, names: list[str]) -> str | None:
    clauses = []
    for name in names:
        cleaned = strip_like_wildcards(name).strip()
        if cleaned:
            clauses.append(f"{column}.ilike.{_quote(cleaned)}")
    if not clauses:
        return None
    return "(" + ",".join(clauses) + ")"


class SupabaseArtistStore(IArtistStore):
    """Artist datastore backed by Supabase's PostgREST API.

    Parameters
    ----------
    base_url:
        Project URL, e.g. ``https://xyz.supabase.co``.
    api_key:
        Service-role key (server) or anon key (client, read-only paths).
    http_client:
        Shared ``httpx.AsyncClient``; the store never closes it.
    """

    def __init__(self, base_url: str, api_key: str, http_client: httpx.AsyncClient) -> None:
        self._rest_url = f"{base_url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._http = http_client
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Canonical ``artists`` table
    # ------------------------------------------------------------------

    async def find_canonical_images(self, names: list[str]) -> list[CanonicalArtist]:
        name_filter = _ilike_any("name", names)
        if name_filter is None:
            return []
        rows = await self._select(
            "artists",
            {
                "select": "name,image_url",
                "or": name_filter,
                "image_url": "not.is.null",
                "limit": str(len(names) * 2),
            },
        )
        return [self._to_canonical(row) for row in rows]

    async def search_artists(self, term: str, limit: int) -> list[CanonicalArtist]:
        cleaned = strip_like_wildcards(term).strip()
        if not cleaned:
            return []
        rows = await self._select(
            "artists",
            {
                "select": "id,name,image_url,genres,spotify_artist_id",
                "name": f"ilike.*{cleaned}*",
                "limit": str(limit),
            },
        )
        return [self._to_canonical(row) for row in rows]

    async def upsert_canonical_artist(
        self,
        name: str,
        image_url: str,
        spotify_id: str | None,
        genres: list[str],
    ) -> None:
        body = {
            "name": name.strip(),
            "image_url": image_url,
            "spotify_artist_id": spotify_id,
            "genres": genres,
        }
        response = await self._request("POST", "artists", json=body, check=False)
        if response.is_success:
            return
        # Unique-name conflict: fill in the existing row only if it has no image.
        self._logger.debug("canonical_artist_exists", name=name, status=response.status_code)
        await self._request(
            "PATCH",
            "artists",
            params={
                "name": f"ilike.{strip_like_wildcards(name).strip()}",
                "image_url": "is.null",
            },
            json={"image_url": image_url, "spotify_artist_id": spotify_id, "genres": genres},
        )

    # ------------------------------------------------------------------
    # Per-show ``show_artists`` table
    # ------------------------------------------------------------------

    async def find_show_artist_images(self, names: list[str]) -> list[ShowArtist]:
        name_filter = _ilike_any("artist_name", names)
        if name_filter is None:
            return []
        rows = await self._select(
            "show_artists",
            {
                "select": _SHOW_ARTIST_COLUMNS,
                "or": name_filter,
                "artist_image_url": "not.is.null",
                "order": "is_headliner.desc",
                "limit": str(len(names) * 3),
            },
        )
        return [self._to_show_artist(row) for row in rows]

    async def update_show_artist_images(
        self,
        name: str,
        image_url: str,
        spotify_id: str | None,
    ) -> None:
        await self._request(
            "PATCH",
            "show_artists",
            params={
                "artist_name": f"ilike.{strip_like_wildcards(name).strip()}",
                "artist_image_url": "is.null",
            },
            json={"artist_image_url": image_url, "spotify_artist_id": spotify_id},
        )

    async def list_show_artists_with_images(self, limit: int) -> list[ShowArtist]:
        rows = await self._select(
            "show_artists",
            {
                "select": _SHOW_ARTIST_COLUMNS,
                "artist_image_url": "not.is.null",
                "limit": str(limit),
            },
        )
        return [self._to_show_artist(row) for row in rows]

    async def list_show_artists_missing_images(self, limit: int) -> list[ShowArtist]:
        rows = await self._select(
            "show_artists",
            {
                "select": _SHOW_ARTIST_COLUMNS,
                "or": "(artist_image_url.is.null,spotify_artist_id.is.null)",
                "limit": str(limit),
            },
        )
        return [self._to_show_artist(row) for row in rows]

    async def set_show_artist_image(
        self,
        row_id: str,
        image_url: str | None,
        spotify_id: str | None,
    ) -> None:
        await self._request(
            "PATCH",
            "show_artists",
            params={"id": f"eq.{row_id}"},
            json={"artist_image_url": image_url, "spotify_artist_id": spotify_id},
        )

    async def clear_show_artist_image(self, row_id: str) -> None:
        await self._request(
            "PATCH",
            "show_artists",
            params={"id": f"eq.{row_id}"},
            json={"artist_image_url": None},
        )

    def get_provider_name(self) -> str:
        return "supabase"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        response = await self._request("GET", table, params=params)
        try:
            rows = response.json()
        except ValueError as exc:
            raise DatastoreError(
                message=f"Unparseable response from {table}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return rows if isinstance(rows, list) else []

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        check: bool = True,
    ) -> httpx.Response:
        try:
            response = await self._http.request(
                method,
                f"{self._rest_url}/{table}",
                params=params,
                json=json,
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            raise DatastoreError(
                message=f"{method} {table} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if check and not response.is_success:
            raise DatastoreError(
                message=f"{method} {table} returned {response.status_code}",
                provider_name=self.get_provider_name(),
            )
        return response

    @staticmethod
    def _to_canonical(row: dict[str, Any]) -> CanonicalArtist:
        return CanonicalArtist(
            id=str(row["id"]) if row.get("id") is not None else None,
            name=row.get("name") or "",
            image_url=row.get("image_url"),
            genres=list(row.get("genres") or []),
            spotify_artist_id=row.get("spotify_artist_id"),
        )

    @staticmethod
    def _to_show_artist(row: dict[str, Any]) -> ShowArtist:
        return ShowArtist(
            id=str(row["id"]) if row.get("id") is not None else None,
            show_id=str(row["show_id"]) if row.get("show_id") is not None else None,
            artist_name=row.get("artist_name") or "",
            artist_image_url=row.get("artist_image_url"),
            spotify_artist_id=row.get("spotify_artist_id"),
            is_headliner=bool(row.get("is_headliner")),
        )
