"""Scene services: image resolution, artist search, batch lookup and backfill."""

from scene.services.artist_search import ArtistSearchSession, merge_search_results
from scene.services.backfill_service import BackfillReport, ImageBackfillService
from scene.services.batch_image_service import BatchImageService
from scene.services.circuit_breaker import BreakerState, CircuitBreaker
from scene.services.image_resolver import ArtistImageResolver

__all__ = [
    "ArtistImageResolver",
    "ArtistSearchSession",
    "BackfillReport",
    "BatchImageService",
    "BreakerState",
    "CircuitBreaker",
    "ImageBackfillService",
    "merge_search_results",
]
