"""Scene API layer - routes, schemas, and middleware."""

from scene.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from scene.api.routes import functions_router, router
from scene.api.schemas import (
    BackfillResponse,
    BatchArtistImagesError,
    BatchArtistImagesRequest,
    BatchArtistImagesResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "functions_router",
    "router",
    "BackfillResponse",
    "BatchArtistImagesError",
    "BatchArtistImagesRequest",
    "BatchArtistImagesResponse",
    "ErrorResponse",
    "HealthResponse",
]
