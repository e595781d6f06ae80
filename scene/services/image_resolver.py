"""Client-side artist image resolver.

Turns a list of artist names into a ``{lowercased name: image URL}`` map
using three tiers, cheapest first:

    1. Image cache      - session-scoped, injected ICacheProvider
    2. Canonical store  - one batched case-insensitive query on ``artists``
    3. Batch endpoint   - IBatchImageProvider (show_artists → Spotify)

# ─── DEDUPLICATION (Junior Developer Guide) ───────────────────────────
#
# A feed screen renders many cards at once, and each card asks for the
# same handful of headliners.  Without dedup, ten concurrent resolve()
# calls would fire ten identical datastore queries and ten batch calls.
#
# resolve() therefore keys the *uncached* part of each request by the
# frozenset of lowercased names and runs it through SingleFlight:
#
#   resolve(["Bicep", "Bonobo"])  ─┐
#                                  ├─→ one _resolve_uncached() call
#   resolve(["bonobo", "BICEP "]) ─┘        shared by both callers
#
# Once that flight settles (success or failure) the key is dropped, and
# everything it found is already in the image cache.
# ──────────────────────────────────────────────────────────────────────

Failures never reach the caller: each tier's errors are logged and the
resolver returns whatever the other tiers produced (possibly nothing).
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from scene.interfaces.artist_store import IArtistStore
from scene.interfaces.batch_image_provider import IBatchImageProvider
from scene.interfaces.cache_provider import ICacheProvider
from scene.utils.concurrency import SingleFlight
from scene.utils.errors import SceneError
from scene.utils.image_sources import (
    DEFAULT_PREMIUM_HOSTS,
    is_premium_image,
    is_user_uploaded_image,
    merge_image_url,
)
from scene.utils.logging import get_logger
from scene.utils.text_normalizer import chunked, dedupe_names, name_key


class ArtistImageResolver:
    """Tiered, cached, deduplicated artist image lookup.

    Parameters
    ----------
    store:
        Artist datastore (canonical tier and single-name show lookups).
    batch_provider:
        Remote tier; the batch endpoint over HTTP or in-process.
    image_cache:
        Injected image cache shared by every resolver using the same session.
    max_remote_names:
        Cap on names sent to the remote tier per resolve() call.
    batch_size:
        Names per remote call; matches the endpoint's own cap.
    premium_hosts:
        Image hosts whose URLs override any other match.
    """

    def __init__(
        self,
        store: IArtistStore,
        batch_provider: IBatchImageProvider,
        image_cache: ICacheProvider,
        *,
        max_remote_names: int = 50,
        batch_size: int = 20,
        premium_hosts: Iterable[str] = DEFAULT_PREMIUM_HOSTS,
    ) -> None:
        self._store = store
        self._batch = batch_provider
        self._cache = image_cache
        self._max_remote_names = max_remote_names
        self._batch_size = batch_size
        self._premium_hosts = tuple(premium_hosts)
        self._flights: SingleFlight[frozenset[str], dict[str, str]] = SingleFlight("image_resolver")
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def inflight(self) -> int:
        """Number of uncached name-sets currently being resolved."""
        return len(self._flights)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def resolve(self, names: Iterable[str]) -> dict[str, str]:
        """Resolve image URLs for *names*.

        Returns
        -------
        dict[str, str]
            Lowercased name → image URL.  Names without an image are absent.
        """
        unique = dedupe_names(names)
        result: dict[str, str] = {}
        uncached: list[str] = []

        for name in unique:
            key = name_key(name)
            cached = await self._cache.get(key)
            if cached:
                result[key] = cached
            else:
                uncached.append(name)

        if not uncached:
            return result

        flight_key = frozenset(name_key(n) for n in uncached)
        try:
            resolved = await self._flights.run(flight_key, lambda: self._resolve_uncached(uncached))
        except Exception as exc:
            self._logger.warning(
                "image_resolution_failed",
                names=len(uncached),
                error=str(exc),
            )
            return result

        for key in flight_key:
            url = resolved.get(key)
            if url:
                result[key] = url
        return result

    async def resolve_one(self, name: str) -> str | None:
        """Resolve a single name; convenience wrapper over :meth:`resolve`."""
        return (await self.resolve([name])).get(name_key(name))

    async def resolve_show_image(self, name: str) -> str | None:
        """Return the first platform-sourced image recorded on any show for *name*.

        User-uploaded concert photos are skipped.  Errors yield ``None``.
        """
        try:
            rows = await self._store.find_show_artist_images([name])
        except SceneError as exc:
            self._logger.warning("show_image_lookup_failed", artist=name, error=str(exc))
            return None
        for row in rows:
            if row.artist_image_url and not is_user_uploaded_image(row.artist_image_url):
                return row.artist_image_url
        return None

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    async def _resolve_uncached(self, names: list[str]) -> dict[str, str]:
        found: dict[str, str] = {}

        # Tier 1: canonical artists table.
        try:
            rows = await self._store.find_canonical_images(names)
        except SceneError as exc:
            self._logger.warning("canonical_lookup_failed", names=len(names), error=str(exc))
            rows = []
        for row in rows:
            merge_image_url(found, name_key(row.name), row.image_url, self._premium_hosts)

        # Tier 2: batch endpoint, for names still missing or holding a
        # non-premium URL that a premium remote match may replace.
        missing = [
            n
            for n in names
            if name_key(n) not in found or not is_premium_image(found[name_key(n)], self._premium_hosts)
        ][: self._max_remote_names]
        for batch in chunked(missing, self._batch_size):
            try:
                images = await self._batch.fetch_images(batch)
            except Exception as exc:
                self._logger.warning("batch_image_call_failed", names=len(batch), error=str(exc))
                break
            for key, image in images.items():
                merge_image_url(found, name_key(key), image.image_url, self._premium_hosts)

        for key, url in found.items():
            await self._cache.set(key, url)

        self._logger.debug(
            "images_resolved",
            requested=len(names),
            resolved=len(found),
            remote_candidates=len(missing),
        )
        return found
