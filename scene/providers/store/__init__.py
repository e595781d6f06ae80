"""Artist datastore adapters.

SupabaseArtistStore talks to the production backend; SQLiteArtistStore is
a drop-in local replacement selected with ``DATASTORE_BACKEND=sqlite``.
"""

from scene.providers.store.sqlite_store import SQLiteArtistStore
from scene.providers.store.supabase_store import SupabaseArtistStore

__all__ = ["SQLiteArtistStore", "SupabaseArtistStore"]
