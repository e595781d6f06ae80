"""State models for the interactive artist search session.

The session moves through::

    IDLE ──term ≥ min_chars──→ DEBOUNCING ──timer──→ SEARCHING ──→ RESOLVED
      ↑                            │                     ├───────→ FAILED
      └──── term < min_chars ──────┘                     └───────→ CANCELLED

A new term while DEBOUNCING or SEARCHING cancels the running search.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from scene.models.artist import ArtistSearchResult


class SearchState(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    IDLE = "IDLE"
    DEBOUNCING = "DEBOUNCING"
    SEARCHING = "SEARCHING"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class SearchSnapshot(BaseModel):
    """What a UI renders: the visible state of one search session."""

    model_config = ConfigDict(frozen=True)

    term: str = ""
    state: SearchState = SearchState.IDLE
    results: list[ArtistSearchResult] = Field(default_factory=list)
    is_searching: bool = False
    remote_unavailable: bool = False
