"""Server-side batch artist image lookup behind ``POST /batch-artist-images``.

Holds the external API credentials, so it is the only place that talks to
Spotify on behalf of clients.  Implements :class:`IBatchImageProvider`, so
the client-side resolver can also call it in-process.

# ─── LOOKUP ORDER (Junior Developer Guide) ────────────────────────────
#
#   names ──truncate to 20──→ show_artists rows (headliners first)
#                               │ skip user-uploaded concert photos
#                               ▼
#                           still missing?
#                               │ for each name, one at a time:
#                               │   breaker open?  ─→ stop, return partial
#                               │   Spotify search ─→ 429: trip breaker, stop
#                               │   found image    ─→ add + persist in background
#                               │   sleep 200 ms between calls
#                               ▼
#                         {lowercased name: ArtistImage}
#
# Persistence goes through a BackgroundTaskQueue: the response never waits
# on the datastore writes, and a failed write is logged, not retried.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from scene.interfaces.artist_image_provider import IArtistImageProvider
from scene.interfaces.artist_store import IArtistStore
from scene.interfaces.batch_image_provider import IBatchImageProvider
from scene.models.artist import ArtistImage, ExternalArtist
from scene.services.circuit_breaker import CircuitBreaker
from scene.utils.concurrency import BackgroundTaskQueue
from scene.utils.errors import (
    AuthenticationError,
    DatastoreError,
    ProviderUnavailableError,
    RateLimitError,
)
from scene.utils.image_sources import is_user_uploaded_image
from scene.utils.logging import get_logger
from scene.utils.text_normalizer import dedupe_names, name_key


class BatchImageService(IBatchImageProvider):
    """Resolve images for up to ``max_names`` artists per call.

    Parameters
    ----------
    store:
        Artist datastore: read for existing show images, written in the background.
    image_provider:
        External artist API (Spotify).
    breaker:
        Circuit breaker guarding *image_provider*.
    persister:
        Queue for the fire-and-forget datastore writes.
    max_names:
        Per-call cap; extra names are ignored.
    request_delay:
        Seconds to wait between consecutive external calls.
    sleep:
        Injectable for tests.
    """

    def __init__(
        self,
        store: IArtistStore,
        image_provider: IArtistImageProvider,
        breaker: CircuitBreaker,
        persister: BackgroundTaskQueue,
        *,
        max_names: int = 20,
        request_delay: float = 0.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._provider = image_provider
        self._breaker = breaker
        self._persister = persister
        self._max_names = max_names
        self._request_delay = request_delay
        self._sleep = sleep
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def fetch_images(self, names: list[str]) -> dict[str, ArtistImage]:
        requested = dedupe_names(
            [n for n in names if isinstance(n, str) and n.strip()][: self._max_names]
        )
        if not requested:
            return {}

        found = await self._from_show_artists(requested)
        missing = [n for n in requested if name_key(n) not in found]
        external_calls = 0
        if missing:
            external_calls = await self._from_external(missing, found)

        self._logger.info(
            "batch_images_resolved",
            requested=len(requested),
            resolved=len(found),
            external_calls=external_calls,
        )
        return found

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    async def _from_show_artists(self, names: list[str]) -> dict[str, ArtistImage]:
        found: dict[str, ArtistImage] = {}
        try:
            rows = await self._store.find_show_artist_images(names)
        except DatastoreError as exc:
            self._logger.warning("show_artist_lookup_failed", names=len(names), error=str(exc))
            return found

        for row in rows:
            key = name_key(row.artist_name)
            url = row.artist_image_url
            if key in found or not url or is_user_uploaded_image(url):
                continue
            found[key] = ArtistImage(image_url=url, spotify_id=row.spotify_artist_id)
        return found

    async def _from_external(self, names: list[str], found: dict[str, ArtistImage]) -> int:
        """Look *names* up one by one, adding hits to *found*.  Returns calls made."""
        calls = 0
        for name in names:
            if await self._breaker.is_open():
                self._logger.info(
                    "batch_external_skipped_breaker_open",
                    breaker=self._breaker.name,
                    remaining=len(names) - calls,
                )
                break

            if calls:
                await self._sleep(self._request_delay)
            calls += 1

            try:
                artist = await self._provider.search_artist(name)
            except RateLimitError as exc:
                await self._breaker.trip(exc.retry_after)
                break
            except AuthenticationError as exc:
                self._logger.error("batch_external_auth_failed", error=str(exc))
                break
            except ProviderUnavailableError as exc:
                self._logger.warning("batch_external_lookup_failed", artist=name, error=str(exc))
                continue
            except Exception as exc:
                self._logger.warning("batch_external_lookup_error", artist=name, error=str(exc))
                continue

            if artist is None or not artist.image_url:
                continue
            found[name_key(name)] = ArtistImage(image_url=artist.image_url, spotify_id=artist.id)
            self._persist(name, artist)
        return calls

    # ------------------------------------------------------------------
    # Background persistence
    # ------------------------------------------------------------------

    def _persist(self, name: str, artist: ExternalArtist) -> None:
        image_url = artist.image_url or ""
        self._persister.submit(
            self._store.update_show_artist_images(name, image_url, artist.id),
            label="update_show_artist_images",
        )
        self._persister.submit(
            self._store.upsert_canonical_artist(name, image_url, artist.id, list(artist.genres)),
            label="upsert_canonical_artist",
        )
