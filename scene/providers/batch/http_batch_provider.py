"""HTTP client for a remote batch artist-image endpoint.

Used by client-side code (the resolver) when the batch endpoint runs as a
separate service.  Speaks the ``POST /batch-artist-images`` contract::

    request   {"names": ["Bicep", "Bonobo"]}
    response  {"artists": {"bicep": {"image_url": "...", "spotify_id": "..."}}}
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from scene.interfaces.batch_image_provider import IBatchImageProvider
from scene.models.artist import ArtistImage
from scene.utils.errors import ProviderUnavailableError
from scene.utils.logging import get_logger


class HttpBatchImageProvider(IBatchImageProvider):
    """Calls the batch endpoint at *endpoint_url* with a shared httpx client."""

    def __init__(self, endpoint_url: str, http_client: httpx.AsyncClient) -> None:
        self._endpoint_url = endpoint_url
        self._http = http_client
        self._logger = get_logger(__name__)

    async def fetch_images(self, names: list[str]) -> dict[str, ArtistImage]:
        try:
            response = await self._http.post(self._endpoint_url, json={"names": names})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailableError(
                message=f"Batch image endpoint call failed: {exc}",
                provider_name="batch-artist-images",
            ) from exc

        images: dict[str, ArtistImage] = {}
        for key, value in (payload.get("artists") or {}).items():
            try:
                image = ArtistImage.model_validate(value)
            except ValidationError:
                self._logger.debug("batch_image_entry_skipped", key=key)
                continue
            if image.image_url:
                images[key.lower()] = image
        return images
