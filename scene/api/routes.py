"""FastAPI routes for the Scene backend functions.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; ``main._build_all`` puts them
there at startup.

# ─── API ROUTE MAP (Junior Developer Guide) ───────────────────────────
#
# Endpoint                   Method  Description
# ─────────────────────────────────────────────────────────────────────
# /batch-artist-images       POST    Up to 20 names → {name: image}
# /backfill-artist-images    POST    Stale-URL sweep + image backfill
# /api/v1/health             GET     Health check + breaker state
#
# The two function endpoints keep the unprefixed paths browser clients
# already call.  Neither requires auth; both answer CORS preflights.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from scene import __version__
from scene.api.schemas import (
    BackfillResponse,
    BatchArtistImagesError,
    BatchArtistImagesRequest,
    BatchArtistImagesResponse,
    HealthResponse,
)
from scene.services.backfill_service import ImageBackfillService
from scene.services.batch_image_service import BatchImageService
from scene.services.circuit_breaker import CircuitBreaker
from scene.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

functions_router = APIRouter()
router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependency injection helpers - resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_batch_service(request: Request) -> BatchImageService:
    """Return the batch image service from application state."""
    return request.app.state.batch_service


def _get_backfill_service(request: Request) -> ImageBackfillService:
    """Return the backfill service from application state."""
    return request.app.state.backfill_service


def _get_breaker(request: Request) -> CircuitBreaker:
    """Return the Spotify circuit breaker from application state."""
    return request.app.state.breaker


BatchServiceDep = Annotated[BatchImageService, Depends(_get_batch_service)]
BackfillServiceDep = Annotated[ImageBackfillService, Depends(_get_backfill_service)]
BreakerDep = Annotated[CircuitBreaker, Depends(_get_breaker)]


# ---------------------------------------------------------------------------
# Backend functions
# ---------------------------------------------------------------------------


@functions_router.post(
    "/batch-artist-images",
    response_model=BatchArtistImagesResponse,
    responses={500: {"model": BatchArtistImagesError}},
    summary="Resolve images for a batch of artist names",
)
async def batch_artist_images(
    body: BatchArtistImagesRequest,
    service: BatchServiceDep,
) -> BatchArtistImagesResponse | JSONResponse:
    """Return ``{artists: {lowercased name: {image_url, spotify_id}}}``.

    Partial results are normal (breaker open, names without a match).  Only
    an unexpected failure yields a 500, with an empty ``artists`` map.
    """
    names = body.clean_names()
    if not names:
        return BatchArtistImagesResponse()

    try:
        images = await service.fetch_images(names)
    except Exception as exc:
        _logger.error("batch_artist_images_failed", names=len(names), error=str(exc))
        error = BatchArtistImagesError(error=str(exc) or type(exc).__name__)
        return JSONResponse(status_code=500, content=error.model_dump())

    return BatchArtistImagesResponse(artists=images)


@functions_router.post(
    "/backfill-artist-images",
    response_model=BackfillResponse,
    summary="Clear stale artist images and backfill missing ones",
)
async def backfill_artist_images(service: BackfillServiceDep) -> BackfillResponse:
    """Run the backfill job once.  Datastore failures surface as a JSON 500."""
    report = await service.run()
    return BackfillResponse(**report.model_dump())


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request, breaker: BreakerDep) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    state = await breaker.state()
    providers[f"{breaker.name}_breaker"] = state.value
    providers[f"{breaker.name}_breaker_remaining"] = round(await breaker.remaining(), 1)

    return HealthResponse(
        status="healthy" if providers.get("spotify", False) else "degraded",
        version=__version__,
        providers=providers,
    )
