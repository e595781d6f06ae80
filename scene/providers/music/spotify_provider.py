"""Spotify Web API provider implementing IArtistImageProvider.

Authenticates with the client-credentials flow and caches the access token
in-process until shortly before it expires.  Only the artist search and
artist lookup endpoints are used: each returns image and genre metadata
for the top match.

Rate limiting is *not* handled here.  A 429 becomes a
:class:`RateLimitError` carrying the ``Retry-After`` header, and the
caller's circuit breaker decides what to do with it.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx

from scene.config.settings import Settings
from scene.interfaces.artist_image_provider import IArtistImageProvider
from scene.models.artist import ExternalArtist
from scene.utils.errors import AuthenticationError, ProviderUnavailableError, RateLimitError
from scene.utils.logging import get_logger

_TOKEN_URL = "https://accounts.spotify.com/api/token"
_API_BASE_URL = "https://api.spotify.com/v1"
_TOKEN_EXPIRY_MARGIN = 60  # seconds - refresh before Spotify says it expires


class SpotifyArtistProvider(IArtistImageProvider):
    """Artist image lookups against the Spotify Web API.

    Parameters
    ----------
    settings:
        Application settings holding the client id and secret.
    http_client:
        Shared ``httpx.AsyncClient``; the provider never closes it.
    clock:
        Monotonic clock used for token expiry.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._clock = clock
        self._token: str | None = None
        self._token_expiry: float = 0.0
        self._logger = get_logger(__name__)

    # -- Token handling --------------------------------------------------------

    async def _get_token(self, force_refresh: bool = False) -> str:
        """Return a cached access token, fetching a new one when needed."""
        if not force_refresh and self._token and self._clock() < self._token_expiry:
            return self._token

        if not self.is_available():
            raise AuthenticationError(
                message="Spotify credentials not configured",
                provider_name=self.get_provider_name(),
            )

        try:
            response = await self._http.post(
                _TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(self._settings.spotify_client_id, self._settings.spotify_client_secret),
            )
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Spotify token request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code != 200:
            raise AuthenticationError(
                message=f"Spotify auth failed: {response.status_code}",
                provider_name=self.get_provider_name(),
            )

        payload = response.json()
        self._token = payload["access_token"]
        expires_in = int(payload.get("expires_in", 3600))
        self._token_expiry = self._clock() + max(expires_in - _TOKEN_EXPIRY_MARGIN, 0)
        self._logger.debug("spotify_token_refreshed", expires_in=expires_in)
        return self._token

    async def _authorized_get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """GET *path* with a bearer token, refreshing once on a 401."""
        token = await self._get_token()
        response = await self._send(path, params, token)
        if response.status_code == 401:
            self._logger.info("spotify_token_rejected_retrying", path=path)
            token = await self._get_token(force_refresh=True)
            response = await self._send(path, params, token)
        return response

    async def _send(self, path: str, params: dict[str, Any] | None, token: str) -> httpx.Response:
        try:
            return await self._http.get(
                f"{_API_BASE_URL}{path}",
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Spotify request to {path} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _check_status(self, response: httpx.Response, context: str) -> bool:
        """Raise on 429; return ``False`` for any other non-2xx status."""
        if response.status_code == 429:
            raise RateLimitError(
                message=f"Spotify rate limit hit during {context}",
                provider_name=self.get_provider_name(),
                retry_after=response.headers.get("Retry-After"),
            )
        if not response.is_success:
            # A second 401 after the refresh lands here too: treated as transient.
            self._logger.warning(
                "spotify_request_failed",
                context=context,
                status=response.status_code,
            )
            return False
        return True

    # -- IArtistImageProvider implementation -----------------------------------

    async def search_artist(self, name: str) -> ExternalArtist | None:
        """Search Spotify for *name* and return the top artist match."""
        response = await self._authorized_get(
            "/search",
            params={"q": name, "type": "artist", "limit": 1},
        )
        context = f"search '{name}'"
        if not self._check_status(response, context):
            return None

        try:
            items = response.json().get("artists", {}).get("items") or []
        except (ValueError, AttributeError) as exc:
            raise self._unparseable(context, exc) from exc
        if not items:
            self._logger.debug("spotify_no_match", query=name)
            return None
        return self._map_artist(items[0], context)

    async def get_artist(self, artist_id: str) -> ExternalArtist | None:
        """Fetch an artist directly by Spotify id."""
        response = await self._authorized_get(f"/artists/{artist_id}")
        context = f"artist {artist_id}"
        if not self._check_status(response, context):
            return None
        try:
            data = response.json()
        except ValueError as exc:
            raise self._unparseable(context, exc) from exc
        return self._map_artist(data, context)

    def get_provider_name(self) -> str:
        return "spotify"

    def is_available(self) -> bool:
        return self._settings.has_spotify_credentials()

    # -- Private helpers -------------------------------------------------------

    def _map_artist(self, data: Any, context: str) -> ExternalArtist:
        """Build an ExternalArtist; malformed payloads become ProviderUnavailableError."""
        try:
            images = data.get("images") or []
            image_url = images[0].get("url") if images else None
            return ExternalArtist(
                id=data["id"],
                name=data.get("name", ""),
                image_url=image_url or None,
                genres=list(data.get("genres") or []),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise self._unparseable(context, exc) from exc

    def _unparseable(self, context: str, exc: Exception) -> ProviderUnavailableError:
        return ProviderUnavailableError(
            message=f"Unparseable Spotify response during {context}: {exc}",
            provider_name=self.get_provider_name(),
        )
