"""Abstract base class for the external artist API (image + genre metadata).

The production implementation is Spotify's Web API.  Credentials are
server-side only, so this interface is only ever used by the batch
endpoint and the backfill job, never by client-side code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from scene.models.artist import ExternalArtist


class IArtistImageProvider(ABC):
    """Contract for looking up an artist's image on an external API."""

    @abstractmethod
    async def search_artist(self, name: str) -> ExternalArtist | None:
        """Return the top match for *name*, or ``None`` if there is none.

        Raises
        ------
        scene.utils.errors.RateLimitError
            The API answered 429.  ``retry_after`` carries its hint.
        scene.utils.errors.AuthenticationError
            Credentials were rejected by the token endpoint.
        scene.utils.errors.ProviderUnavailableError
            The API could not be reached.
        """

    @abstractmethod
    async def get_artist(self, artist_id: str) -> ExternalArtist | None:
        """Fetch one artist by provider id.  Same error contract as :meth:`search_artist`."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier used in logs and breaker keys."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` when credentials are configured."""
