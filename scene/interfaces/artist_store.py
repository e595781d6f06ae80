"""Abstract base class for the artist datastore.

The datastore owns two tables: the canonical ``artists`` table and the
per-show ``show_artists`` table.  Name matching is always case-insensitive
and exact (no wildcard expansion) except in :meth:`search_artists`, which
is a substring search.

Implementations raise :class:`scene.utils.errors.DatastoreError` on any
failure so callers can degrade without knowing the backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from scene.models.artist import CanonicalArtist, ShowArtist


class IArtistStore(ABC):
    """Contract for reading and writing artist rows."""

    # ------------------------------------------------------------------
    # Canonical ``artists`` table
    # ------------------------------------------------------------------

    @abstractmethod
    async def find_canonical_images(self, names: list[str]) -> list[CanonicalArtist]:
        """Return canonical rows whose name matches any of *names* and that have an image.

        At most ``2 * len(names)`` rows are returned.
        """

    @abstractmethod
    async def search_artists(self, term: str, limit: int) -> list[CanonicalArtist]:
        """Return up to *limit* canonical rows whose name contains *term*."""

    @abstractmethod
    async def upsert_canonical_artist(
        self,
        name: str,
        image_url: str,
        spotify_id: str | None,
        genres: list[str],
    ) -> None:
        """Insert a canonical artist, or fill in the image of an existing one.

        An existing row keeps its image if it already has one.
        """

    # ------------------------------------------------------------------
    # Per-show ``show_artists`` table
    # ------------------------------------------------------------------

    @abstractmethod
    async def find_show_artist_images(self, names: list[str]) -> list[ShowArtist]:
        """Return show-artist rows matching any of *names* with a non-null image.

        Headliner rows come first.  At most ``3 * len(names)`` rows.
        """

    @abstractmethod
    async def update_show_artist_images(
        self,
        name: str,
        image_url: str,
        spotify_id: str | None,
    ) -> None:
        """Set image and Spotify id on every row for *name* that has no image yet."""

    @abstractmethod
    async def list_show_artists_with_images(self, limit: int) -> list[ShowArtist]:
        """Return up to *limit* rows that currently carry an image URL."""

    @abstractmethod
    async def list_show_artists_missing_images(self, limit: int) -> list[ShowArtist]:
        """Return up to *limit* rows missing an image URL or a Spotify id."""

    @abstractmethod
    async def set_show_artist_image(
        self,
        row_id: str,
        image_url: str | None,
        spotify_id: str | None,
    ) -> None:
        """Overwrite image URL and Spotify id of one row."""

    @abstractmethod
    async def clear_show_artist_image(self, row_id: str) -> None:
        """Null out the image URL of one row (stale or broken link)."""

    def get_provider_name(self) -> str:
        return type(self).__name__
