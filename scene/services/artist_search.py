"""Interactive artist search: debounced, cached, cancellable.

One :class:`ArtistSearchSession` backs one search box.  The UI calls
:meth:`ArtistSearchSession.set_term` on every keystroke and renders the
:class:`SearchSnapshot` it receives through ``on_change``.

# ─── SEARCH FLOW (Junior Developer Guide) ─────────────────────────────
#
#   keystroke ─→ set_term()
#                  ├─ term < min_chars ─→ IDLE, results cleared
#                  └─ else ─→ DEBOUNCING (timer restarts on each keystroke)
#                               │ timer fires
#                               ▼
#                           SEARCHING
#                  1. result cache (5 min TTL)      hit ─→ RESOLVED
#                  2. local artists table           ≥ 3 rows ─→ RESOLVED
#                  3. remote search, merged after local rows ─→ RESOLVED
#                  any error ─→ FAILED (empty results, never raised)
#
# CANCELLATION: each search carries a CancellationToken.  A new term
# flips the previous token, and the old search checks it after every
# await.  A superseded search may still finish its network call, but
# it returns without touching results, state, or the cache.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from scene.interfaces.artist_search_provider import IArtistSearchProvider
from scene.interfaces.artist_store import IArtistStore
from scene.interfaces.cache_provider import ICacheProvider
from scene.models.artist import ArtistSearchResult, CanonicalArtist
from scene.models.search import SearchSnapshot, SearchState
from scene.utils.concurrency import CancellationToken
from scene.utils.logging import get_logger
from scene.utils.text_normalizer import name_key, search_key

SearchListener = Callable[[SearchSnapshot], None]


def merge_search_results(
    local: list[ArtistSearchResult],
    remote: list[ArtistSearchResult],
) -> list[ArtistSearchResult]:
    """Concatenate local then remote results, dropping repeated names.

    Names compare case-insensitively; the first occurrence wins, so a
    local row always beats a remote row for the same artist.
    """
    seen: set[str] = set()
    merged: list[ArtistSearchResult] = []
    for result in [*local, *remote]:
        key = name_key(result.name)
        if key in seen:
            continue
        seen.add(key)
        merged.append(result)
    return merged


def _from_canonical(row: CanonicalArtist) -> ArtistSearchResult:
    return ArtistSearchResult(
        id=row.spotify_artist_id or row.id or row.name,
        name=row.name,
        image_url=row.image_url or None,
        genres=row.genres[:2] or None,
    )


class ArtistSearchSession:
    """State machine behind one artist search box.

    Parameters
    ----------
    store:
        Local artist datastore, searched first.
    remote:
        Remote catalogue search, used when local results are thin.
    result_cache:
        Search result cache shared across sessions (5-minute TTL).
    min_chars:
        Shortest trimmed term that triggers a search.
    debounce_ms:
        Quiet period after the last keystroke before searching.
    max_results:
        Cap on results shown.
    sufficient_local:
        Local result count at which the remote search is skipped.
    on_change:
        Called with a fresh :class:`SearchSnapshot` after every visible change.
    """

    def __init__(
        self,
        store: IArtistStore,
        remote: IArtistSearchProvider,
        result_cache: ICacheProvider,
        *,
        min_chars: int = 3,
        debounce_ms: int = 500,
        max_results: int = 6,
        sufficient_local: int = 3,
        on_change: SearchListener | None = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self._cache = result_cache
        self._min_chars = min_chars
        self._debounce = debounce_ms / 1000
        self._max_results = max_results
        self._sufficient_local = sufficient_local
        self._on_change = on_change

        self._term = ""
        self._state = SearchState.IDLE
        self._results: list[ArtistSearchResult] = []
        self._is_searching = False
        self._remote_unavailable = False

        self._token: CancellationToken | None = None
        self._task: asyncio.Task[None] | None = None
        # Superseded searches keep running until their await returns.
        self._stale_tasks: set[asyncio.Task[None]] = set()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def results(self) -> list[ArtistSearchResult]:
        return list(self._results)

    @property
    def is_searching(self) -> bool:
        return self._is_searching

    @property
    def remote_unavailable(self) -> bool:
        return self._remote_unavailable

    def snapshot(self) -> SearchSnapshot:
        return SearchSnapshot(
            term=self._term,
            state=self._state,
            results=list(self._results),
            is_searching=self._is_searching,
            remote_unavailable=self._remote_unavailable,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_term(self, term: str) -> None:
        """Handle a change of the search box text.  Must run inside an event loop."""
        self._supersede()
        self._term = term
        key = search_key(term)

        if len(key) < self._min_chars:
            self._results = []
            self._is_searching = False
            self._state = SearchState.IDLE
            self._notify()
            return

        token = CancellationToken()
        self._token = token
        self._state = SearchState.DEBOUNCING
        self._is_searching = True
        self._notify()
        self._task = asyncio.ensure_future(self._debounce_then_search(term, key, token))

    def clear_results(self) -> None:
        self._results = []
        self._is_searching = False
        self._notify()

    def cancel(self) -> None:
        """Abandon the current search, if any, and mark the session CANCELLED."""
        if self._token is None or self._state not in (SearchState.DEBOUNCING, SearchState.SEARCHING):
            return
        self._supersede()
        self._state = SearchState.CANCELLED
        self._is_searching = False
        self._notify()

    async def wait_settled(self) -> None:
        """Wait until the current search (not superseded ones) has finished."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    async def close(self) -> None:
        """Cancel everything this session started and wait for it to stop."""
        self._supersede()
        pending = list(self._stale_tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)

    # ------------------------------------------------------------------
    # Search pipeline
    # ------------------------------------------------------------------

    async def _debounce_then_search(self, term: str, key: str, token: CancellationToken) -> None:
        await asyncio.sleep(self._debounce)
        if token.cancelled:
            return
        self._state = SearchState.SEARCHING
        self._notify()
        await self._search(term, key, token)

    async def _search(self, term: str, key: str, token: CancellationToken) -> None:
        try:
            cached = await self._cache.get(key)
            if token.cancelled:
                return
            if cached is not None:
                self._logger.debug("artist_search_cache_hit", term=key)
                self._remote_unavailable = False
                self._resolve(cached[: self._max_results])
                return

            local_rows = await self._store.search_artists(key, self._max_results)
            if token.cancelled:
                return
            local = [_from_canonical(row) for row in local_rows]

            if len(local) >= self._sufficient_local:
                final = local[: self._max_results]
                self._remote_unavailable = False
                self._resolve(final)
                await self._cache.set(key, final)
                self._logger.debug("artist_search_local_only", term=key, results=len(final))
                return

            remote = await self._remote.search_artists(term.strip(), self._max_results)
            if token.cancelled:
                return

            self._remote_unavailable = remote.unavailable
            final = merge_search_results(local, remote.results)[: self._max_results]
            self._resolve(final)
            # Degraded answers are not cached, so recovery is visible immediately.
            if not remote.unavailable:
                await self._cache.set(key, final)
            self._logger.debug(
                "artist_search_resolved",
                term=key,
                local=len(local),
                remote=len(remote.results),
                results=len(final),
                remote_unavailable=remote.unavailable,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if token.cancelled:
                return
            self._logger.error("artist_search_failed", term=key, error=str(exc))
            self._results = []
            self._is_searching = False
            self._state = SearchState.FAILED
            self._notify()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _resolve(self, results: list[ArtistSearchResult]) -> None:
        self._results = list(results)
        self._is_searching = False
        self._state = SearchState.RESOLVED
        self._notify()

    def _supersede(self) -> None:
        """Cancel the running search so it can no longer touch session state."""
        if self._token is not None:
            self._token.cancel()
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        if self._state is SearchState.DEBOUNCING:
            # Still sleeping: nothing in flight, stop it outright.
            task.cancel()
            return
        self._stale_tasks.add(task)
        task.add_done_callback(self._stale_tasks.discard)

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self.snapshot())
        except Exception as exc:
            # A broken listener must not break the search.
            self._logger.warning("search_listener_failed", error=str(exc))
