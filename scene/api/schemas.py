"""Pydantic request/response schemas for the Scene API.

# ─── HOW SCHEMAS WORK (Junior Developer Guide) ────────────────────────
#
# These models define the shape of every HTTP request and response body.
# FastAPI validates incoming JSON against them (422 on mismatch) and
# serializes outgoing values through ``response_model=...``.
#
# The batch endpoint's request deliberately accepts *any* list for
# ``names``: non-string and blank entries are dropped by the service
# rather than rejected, so one bad name from a client never costs the
# rest of the batch.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from scene.models.artist import ArtistImage


class BatchArtistImagesRequest(BaseModel):
    """Body of ``POST /batch-artist-images``."""

    names: list[Any] = Field(default_factory=list)

    def clean_names(self) -> list[str]:
        """Return the non-blank string entries, in order."""
        return [n for n in self.names if isinstance(n, str) and n.strip()]


class BatchArtistImagesResponse(BaseModel):
    """Images keyed by lowercased artist name."""

    artists: dict[str, ArtistImage] = Field(default_factory=dict)


class BatchArtistImagesError(BaseModel):
    """Failure body of the batch endpoint; ``artists`` is always empty."""

    error: str
    artists: dict[str, ArtistImage] = Field(default_factory=dict)


class BackfillResponse(BaseModel):
    """Result of ``POST /backfill-artist-images``."""

    updated: int
    total: int
    stale_cleared: int


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
