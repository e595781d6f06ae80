"""MusicBrainz provider implementing IArtistSearchProvider.

Uses the musicbrainzngs library for the remote half of interactive artist
search.  musicbrainzngs is synchronous, so each call runs in a worker
thread; requests are spaced to respect MusicBrainz's 1 request/second
policy.

Failures never raise: a 404 means "no such artist" (empty results), and
any other service or network error produces an empty response flagged
``unavailable`` so the UI can say the catalogue is unreachable.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import musicbrainzngs
import structlog

from scene.config.settings import Settings
from scene.interfaces.artist_search_provider import IArtistSearchProvider
from scene.models.artist import ArtistSearchResult, RemoteSearchResponse

logger = structlog.get_logger(logger_name=__name__)


class MusicBrainzSearchProvider(IArtistSearchProvider):
    """Remote artist search against the MusicBrainz web service.

    Attributes
    ----------
    _last_request_time : float
        Monotonic timestamp of the most recent API call, used for throttling.
    """

    _MIN_REQUEST_INTERVAL: float = 1.0  # seconds between requests

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._last_request_time: float = 0.0
        self._throttle_lock = asyncio.Lock()

        musicbrainzngs.set_useragent(
            settings.musicbrainz_app_name,
            settings.musicbrainz_app_version,
            settings.musicbrainz_contact or None,
        )

    async def _throttle(self) -> None:
        """Enforce the MusicBrainz 1 req/sec rate limit."""
        async with self._throttle_lock:
            elapsed = time.monotonic() - self._last_request_time
            if self._last_request_time > 0 and elapsed < self._MIN_REQUEST_INTERVAL:
                await asyncio.sleep(self._MIN_REQUEST_INTERVAL - elapsed)
            self._last_request_time = time.monotonic()

    # ------------------------------------------------------------------
    # IArtistSearchProvider implementation
    # ------------------------------------------------------------------

    async def search_artists(self, term: str, limit: int) -> RemoteSearchResponse:
        await self._throttle()
        try:
            response = await asyncio.to_thread(
                musicbrainzngs.search_artists, artist=term, limit=limit
            )
        except musicbrainzngs.ResponseError as exc:
            status = getattr(exc.cause, "code", None)
            if status == 404:
                logger.debug("musicbrainz_no_results", query=term)
                return RemoteSearchResponse()
            logger.warning("musicbrainz_search_refused", query=term, status=status)
            return RemoteSearchResponse(unavailable=True)
        except musicbrainzngs.WebServiceError as exc:
            logger.warning("musicbrainz_unreachable", query=term, error=str(exc))
            return RemoteSearchResponse(unavailable=True)

        results = [self._map_artist(a) for a in response.get("artist-list", [])]
        logger.debug("musicbrainz_artist_search", query=term, result_count=len(results))
        return RemoteSearchResponse(results=results[:limit])

    def get_provider_name(self) -> str:
        return "musicbrainz"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _map_artist(artist: dict[str, Any]) -> ArtistSearchResult:
        # Disambiguation ("UK electronic duo") is more useful than country.
        subtitle = artist.get("disambiguation") or artist.get("country") or None
        return ArtistSearchResult(
            id=artist["id"],
            name=artist.get("name", ""),
            genres=subtitle.split(", ") if subtitle else None,
            subtitle=subtitle,
        )
