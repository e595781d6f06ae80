"""Scene domain models - re-exports all public model classes.

    - artist.py  - datastore rows and lookup results
    - search.py  - search session state and UI snapshot
"""

from __future__ import annotations

from scene.models.artist import (
    ArtistImage,
    ArtistSearchResult,
    CanonicalArtist,
    ExternalArtist,
    RemoteSearchResponse,
    ShowArtist,
)
from scene.models.search import SearchSnapshot, SearchState

__all__ = [
    "ArtistImage",
    "ArtistSearchResult",
    "CanonicalArtist",
    "ExternalArtist",
    "RemoteSearchResponse",
    "SearchSnapshot",
    "SearchState",
    "ShowArtist",
]
