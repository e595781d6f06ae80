"""Maintenance job that repairs artist images on ``show_artists`` rows.

Two passes, run in order by :meth:`ImageBackfillService.run`:

1. **Staleness sweep** -- CDN image URLs expire.  A random sample of rows
   that have an image is checked with ``HEAD``; any URL that does not
   answer 2xx (after redirects) or cannot be reached is cleared, so the
   backfill pass picks the row up again.
2. **Backfill** -- rows missing an image or a Spotify id are looked up on
   the external API: first directly by their known Spotify id, then by
   name search for the rest.  Each matching row is updated by id.

The breaker shared with the batch endpoint is honoured: a 429 trips it and
ends the lookups for this run.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable

import httpx
import structlog
from pydantic import BaseModel, ConfigDict

from scene.interfaces.artist_image_provider import IArtistImageProvider
from scene.interfaces.artist_store import IArtistStore
from scene.models.artist import ExternalArtist, ShowArtist
from scene.services.circuit_breaker import CircuitBreaker
from scene.utils.errors import (
    AuthenticationError,
    DatastoreError,
    ProviderUnavailableError,
    RateLimitError,
)
from scene.utils.logging import get_logger
from scene.utils.text_normalizer import name_key


class BackfillReport(BaseModel):
    """Summary of one backfill run."""

    model_config = ConfigDict(frozen=True)

    updated: int = 0
    total: int = 0
    stale_cleared: int = 0


class _StopLookups(Exception):
    """Internal signal: the external API must not be called again this run."""


class ImageBackfillService:
    """Stale-URL sweep plus external backfill for ``show_artists``.

    Parameters
    ----------
    store:
        Artist datastore.
    image_provider:
        External artist API (Spotify).
    breaker:
        Circuit breaker guarding *image_provider*.
    http_client:
        Client used for the ``HEAD`` checks.
    stale_sample:
        How many image URLs to check per run.
    stale_pool:
        How many rows with images to sample from.
    limit:
        Maximum rows considered by the backfill pass.
    check_delay, request_delay:
        Pauses between HEAD checks and between external calls, in seconds.
    """

    def __init__(
        self,
        store: IArtistStore,
        image_provider: IArtistImageProvider,
        breaker: CircuitBreaker,
        http_client: httpx.AsyncClient,
        *,
        stale_sample: int = 50,
        stale_pool: int = 200,
        limit: int = 500,
        check_delay: float = 0.1,
        request_delay: float = 0.2,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._provider = image_provider
        self._breaker = breaker
        self._http = http_client
        self._stale_sample = stale_sample
        self._stale_pool = stale_pool
        self._limit = limit
        self._check_delay = check_delay
        self._request_delay = request_delay
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def run(self) -> BackfillReport:
        """Run both passes.  Datastore read failures propagate."""
        stale_cleared = await self.clear_stale_images()
        updated, total = await self.backfill_missing()
        report = BackfillReport(updated=updated, total=total, stale_cleared=stale_cleared)
        self._logger.info("backfill_complete", **report.model_dump())
        return report

    # ------------------------------------------------------------------
    # Pass 1: staleness sweep
    # ------------------------------------------------------------------

    async def clear_stale_images(self) -> int:
        """HEAD-check a sample of image URLs and clear the dead ones."""
        rows = await self._store.list_show_artists_with_images(self._stale_pool)
        pool = [row for row in rows if row.id is not None and row.artist_image_url]
        sample = self._rng.sample(pool, min(self._stale_sample, len(pool)))
        cleared = 0

        for index, row in enumerate(sample):
            if index:
                await self._sleep(self._check_delay)
            if await self._is_reachable(row.artist_image_url):
                continue
            try:
                await self._store.clear_show_artist_image(row.id)
            except DatastoreError as exc:
                self._logger.warning("stale_image_clear_failed", row_id=row.id, error=str(exc))
                continue
            cleared += 1

        self._logger.info("stale_image_sweep_complete", checked=len(sample), cleared=cleared)
        return cleared

    async def _is_reachable(self, url: str) -> bool:
        try:
            response = await self._http.head(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            self._logger.debug("image_url_unreachable", url=url, error=str(exc))
            return False
        if not response.is_success:
            self._logger.debug("image_url_stale", url=url, status=response.status_code)
            return False
        return True

    # ------------------------------------------------------------------
    # Pass 2: backfill
    # ------------------------------------------------------------------

    async def backfill_missing(self) -> tuple[int, int]:
        """Fill rows missing an image or Spotify id.  Returns ``(updated, total)``."""
        rows = await self._store.list_show_artists_missing_images(self._limit)
        if not rows:
            return 0, 0

        matches: dict[str, ExternalArtist] = {}
        try:
            await self._lookup_known_ids(rows, matches)
            await self._search_names(rows, matches)
        except _StopLookups:
            self._logger.info("backfill_lookups_stopped", matched=len(matches))

        updated = 0
        for row in rows:
            artist = matches.get(name_key(row.artist_name))
            if artist is None or row.id is None:
                continue
            try:
                await self._store.set_show_artist_image(row.id, artist.image_url, artist.id)
            except DatastoreError as exc:
                self._logger.warning("backfill_row_update_failed", row_id=row.id, error=str(exc))
                continue
            updated += 1
        return updated, len(rows)

    async def _lookup_known_ids(self, rows: list[ShowArtist], matches: dict[str, ExternalArtist]) -> None:
        known: dict[str, str] = {}
        for row in rows:
            key = name_key(row.artist_name)
            if row.spotify_artist_id and key not in known:
                known[key] = row.spotify_artist_id

        for key, artist_id in known.items():
            artist = await self._call(self._provider.get_artist, artist_id)
            if artist is not None:
                matches[key] = artist

    async def _search_names(self, rows: list[ShowArtist], matches: dict[str, ExternalArtist]) -> None:
        names: dict[str, str] = {}
        for row in rows:
            names.setdefault(name_key(row.artist_name), row.artist_name)

        for key, name in names.items():
            if key in matches:
                continue
            artist = await self._call(self._provider.search_artist, name)
            if artist is not None:
                matches[key] = artist

    async def _call(
        self,
        lookup: Callable[[str], Awaitable[ExternalArtist | None]],
        arg: str,
    ) -> ExternalArtist | None:
        """Run one external lookup with breaker checks and pacing."""
        if await self._breaker.is_open():
            raise _StopLookups
        try:
            return await lookup(arg)
        except RateLimitError as exc:
            await self._breaker.trip(exc.retry_after)
            raise _StopLookups from exc
        except AuthenticationError as exc:
            self._logger.error("backfill_auth_failed", error=str(exc))
            raise _StopLookups from exc
        except ProviderUnavailableError as exc:
            self._logger.warning("backfill_lookup_failed", query=arg, error=str(exc))
            return None
        finally:
            await self._sleep(self._request_delay)
