"""Public interface definitions for all external service providers.

Every external API, datastore or cache in Scene is accessed exclusively
through the abstract base classes defined in this package.
"""

from scene.interfaces.artist_image_provider import IArtistImageProvider
from scene.interfaces.artist_search_provider import IArtistSearchProvider
from scene.interfaces.artist_store import IArtistStore
from scene.interfaces.batch_image_provider import IBatchImageProvider
from scene.interfaces.cache_provider import ICacheProvider

__all__ = [
    "IArtistImageProvider",
    "IArtistSearchProvider",
    "IArtistStore",
    "IBatchImageProvider",
    "ICacheProvider",
]
