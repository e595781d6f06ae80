"""Artist domain models shared by the resolver, search session and batch endpoint.

Row models mirror the two backend tables this codebase reads and writes:

    - ``artists``       - canonical, one row per artist (CanonicalArtist)
    - ``show_artists``  - one row per artist per logged show (ShowArtist)

Everything else is transient: values produced by a lookup and handed to
the caller, never persisted by the client.  All models are frozen.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Datastore rows
# ---------------------------------------------------------------------------

class CanonicalArtist(BaseModel):
    """A row of the canonical ``artists`` table."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    image_url: str | None = None
    genres: list[str] = Field(default_factory=list)
    spotify_artist_id: str | None = None


class ShowArtist(BaseModel):
    """A row of the per-show ``show_artists`` table.

    ``artist_image_url`` may hold a user-uploaded concert photo; callers
    filter those out with :func:`scene.utils.image_sources.is_user_uploaded_image`.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    show_id: str | None = None
    artist_name: str
    artist_image_url: str | None = None
    spotify_artist_id: str | None = None
    is_headliner: bool = False


# ---------------------------------------------------------------------------
# Lookup results
# ---------------------------------------------------------------------------

class ArtistImage(BaseModel):
    """The image resolved for one artist by the batch endpoint."""

    model_config = ConfigDict(frozen=True)

    image_url: str
    spotify_id: str | None = None


class ExternalArtist(BaseModel):
    """Top match returned by the external artist API (Spotify)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image_url: str | None = None
    genres: list[str] = Field(default_factory=list)


class ArtistSearchResult(BaseModel):
    """One row of an interactive artist search.

    ``id`` is the Spotify id when the artist is known locally with one,
    otherwise the provider's own id (datastore uuid or MusicBrainz MBID).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image_url: str | None = None
    genres: list[str] | None = None
    subtitle: str | None = None


class RemoteSearchResponse(BaseModel):
    """Result of a remote artist search.

    ``unavailable`` is set when the remote API could not be reached or
    refused service, so the UI can explain why results look thin.
    """

    model_config = ConfigDict(frozen=True)

    results: list[ArtistSearchResult] = Field(default_factory=list)
    unavailable: bool = False
