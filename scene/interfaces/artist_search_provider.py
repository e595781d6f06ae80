"""Abstract base class for the remote artist search used by the search session."""

from __future__ import annotations

from abc import ABC, abstractmethod

from scene.models.artist import RemoteSearchResponse


class IArtistSearchProvider(ABC):
    """Contract for free-text artist search against a remote catalogue.

    Implementations are fail-soft: an unreachable or refusing API yields
    an empty :class:`RemoteSearchResponse` with ``unavailable=True``
    instead of an exception.
    """

    @abstractmethod
    async def search_artists(self, term: str, limit: int) -> RemoteSearchResponse:
        """Search for artists whose name matches *term*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier used in logs."""
