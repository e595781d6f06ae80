"""Utility modules for Scene.

- **errors** -- Exception hierarchy rooted at SceneError; providers raise
  the subclass matching the failure so services can degrade precisely.
- **concurrency** -- SingleFlight request deduplication, cooperative
  cancellation tokens, and the fire-and-forget background task queue.
- **image_sources** -- User-upload detection and the premium-source merge
  rule for artist image URLs.
- **logging** -- structlog setup: console output in development, JSON in
  production.
- **text_normalizer** -- Artist-name keys, case-insensitive dedupe, and
  ilike wildcard stripping.
"""

from scene.utils.concurrency import BackgroundTaskQueue, CancellationToken, SingleFlight
from scene.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    DatastoreError,
    ProviderUnavailableError,
    RateLimitError,
    SceneError,
)
from scene.utils.image_sources import is_premium_image, is_user_uploaded_image, merge_image_url
from scene.utils.logging import configure_logging, get_logger
from scene.utils.text_normalizer import dedupe_names, name_key, search_key

__all__ = [
    "AuthenticationError",
    "BackgroundTaskQueue",
    "CancellationToken",
    "ConfigurationError",
    "DatastoreError",
    "ProviderUnavailableError",
    "RateLimitError",
    "SceneError",
    "SingleFlight",
    "configure_logging",
    "dedupe_names",
    "get_logger",
    "is_premium_image",
    "is_user_uploaded_image",
    "merge_image_url",
    "name_key",
    "search_key",
]
