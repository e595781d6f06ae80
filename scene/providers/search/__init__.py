"""Remote artist search providers."""

from scene.providers.search.musicbrainz_provider import MusicBrainzSearchProvider

__all__ = ["MusicBrainzSearchProvider"]
