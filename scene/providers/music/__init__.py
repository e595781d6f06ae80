"""External artist API providers (image + genre metadata)."""

from scene.providers.music.spotify_provider import SpotifyArtistProvider

__all__ = ["SpotifyArtistProvider"]
