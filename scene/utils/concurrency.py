"""Shared concurrency primitives for the resolver, search session and batch endpoint.

Everything here assumes a single asyncio event loop: shared state is only
mutated between await points, so no locks are needed.  Three patterns are
exposed:

1. **SingleFlight** -- at most one outstanding coroutine per key.  Later
   callers with the same key await the first caller's task instead of
   starting their own.  The entry disappears as soon as the task settles,
   whether it succeeded or failed, so the next call retries.

2. **CancellationToken** -- cooperative cancellation.  The owner of a
   superseded operation flips the token; the operation checks it after
   every await and returns without touching shared state.

3. **BackgroundTaskQueue** -- fire-and-forget jobs with at-most-once
   semantics.  Failures are logged and never retried on the request path.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine, Hashable
from typing import Any, Generic, TypeVar

import structlog

from scene.utils.logging import get_logger

_K = TypeVar("_K", bound=Hashable)
_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


class SingleFlight(Generic[_K, _T]):
    """Deduplicate concurrent work by key.

    Keys should be structured values (e.g. a ``frozenset`` of names) rather
    than delimiter-joined strings, so two different inputs can never
    collide.
    """

    def __init__(self, name: str = "single_flight") -> None:
        self._name = name
        self._inflight: dict[_K, asyncio.Task[_T]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)

    async def run(self, key: _K, factory: Callable[[], Awaitable[_T]]) -> _T:
        """Return the result of ``factory()``, sharing it with concurrent callers.

        The lookup and the registration happen with no await in between, so
        two callers on the same loop can never both start the work.

        Raises
        ------
        Exception
            Whatever ``factory()`` raised; every waiter of that flight sees
            the same exception.
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._discard(key, done))
        else:
            _logger.debug("single_flight_joined", flight=self._name, pending=len(self._inflight))
        # shield: one waiter being cancelled must not cancel the shared work.
        return await asyncio.shield(task)

    def _discard(self, key: _K, task: asyncio.Task[_T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]


class CancellationToken:
    """Cooperative cancellation flag for a single logical operation."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class BackgroundTaskQueue:
    """Run fire-and-forget coroutines without blocking the caller.

    Each submitted job runs exactly once or not at all: there is no retry,
    and jobs submitted while ``max_pending`` jobs are still running are
    dropped with a warning.  Strong references to running tasks are kept
    here so the event loop cannot garbage-collect them mid-flight.
    """

    def __init__(self, max_pending: int = 200) -> None:
        self._max_pending = max_pending
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], *, label: str) -> bool:
        """Schedule *coro* in the background.  Returns ``False`` if it was dropped."""
        if self._closed or len(self._tasks) >= self._max_pending:
            coro.close()
            _logger.warning(
                "background_job_dropped",
                label=label,
                pending=len(self._tasks),
                closed=self._closed,
            )
            return False

        task = asyncio.ensure_future(self._run(coro, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def drain(self) -> None:
        """Wait for every job submitted so far to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Stop accepting jobs and wait for the running ones."""
        self._closed = True
        await self.drain()

    @staticmethod
    async def _run(coro: Coroutine[Any, Any, Any], label: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Background writes are best effort; the response already went out.
            _logger.warning("background_job_failed", label=label, error=str(exc))
