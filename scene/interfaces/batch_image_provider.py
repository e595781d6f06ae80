"""Abstract base class for batch artist-image lookup.

Implemented in-process by :class:`scene.services.batch_image_service.BatchImageService`
and over HTTP by :class:`scene.providers.batch.http_batch_provider.HttpBatchImageProvider`,
so the client-side resolver works against either.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from scene.models.artist import ArtistImage


class IBatchImageProvider(ABC):
    """Contract for resolving images for a list of artist names at once."""

    @abstractmethod
    async def fetch_images(self, names: list[str]) -> dict[str, ArtistImage]:
        """Return images keyed by lowercased artist name.

        Names without a result are simply absent.  Implementations may
        truncate *names* to their own per-call cap.
        """
