"""Circuit breaker guarding calls to a rate-limited external API.

# ─── STATE MACHINE (Junior Developer Guide) ───────────────────────────
#
#   CLOSED ──429 received──→ OPEN(until = now + cooldown) ──now ≥ until──→ CLOSED
#
# While OPEN every caller skips the external API entirely and returns
# whatever partial results it already has.  There is no half-open probe:
# the first call after the cooldown simply goes through.
#
# The cooldown comes from the API's Retry-After header (seconds or an
# HTTP-date), falls back to a default when absent or unparseable, and is
# clamped to [min_cooldown, max_cooldown] so a hostile or buggy header can
# neither hammer the API nor disable it for hours.
#
# The only state is the ``blocked_until`` wall-clock timestamp, kept in
# an injected ICacheProvider under ``circuit:<name>``.  With the default
# in-memory store the breaker protects one process; pointing the store at
# a shared cache makes every instance honour the same cooldown.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
from collections.abc import Callable
from email.utils import parsedate_to_datetime
from enum import Enum

import structlog

from scene.interfaces.cache_provider import ICacheProvider
from scene.providers.cache.memory_cache import MemoryCacheProvider
from scene.utils.logging import get_logger


class BreakerState(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    CLOSED = "CLOSED"
    OPEN = "OPEN"


class CircuitBreaker:
    """Cooldown-based breaker keyed by the protected API's name.

    Parameters
    ----------
    name:
        Identity of the protected API (``"spotify"``); part of the state key.
    state_store:
        Where ``blocked_until`` lives.  Defaults to a private in-memory cache.
    min_cooldown, max_cooldown:
        Clamp bounds for the cooldown, in seconds.
    default_cooldown:
        Cooldown used when the API sends no usable Retry-After.
    clock:
        Wall clock (epoch seconds).  Wall time rather than monotonic so the
        timestamp means the same thing to every process sharing the store.
    """

    def __init__(
        self,
        name: str,
        state_store: ICacheProvider | None = None,
        *,
        min_cooldown: float = 5,
        max_cooldown: float = 120,
        default_cooldown: float = 30,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if min_cooldown > max_cooldown:
            raise ValueError("min_cooldown must not exceed max_cooldown")
        self._name = name
        self._store = state_store or MemoryCacheProvider(
            max_size=16, ttl=max_cooldown * 10, name=f"circuit:{name}"
        )
        self._min = min_cooldown
        self._max = max_cooldown
        self._default = default_cooldown
        self._clock = clock
        self._key = f"circuit:{name}"
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def blocked_until(self) -> float:
        value = await self._store.get(self._key)
        return float(value) if value is not None else 0.0

    async def is_open(self) -> bool:
        return self._clock() < await self.blocked_until()

    async def state(self) -> BreakerState:
        return BreakerState.OPEN if await self.is_open() else BreakerState.CLOSED

    async def remaining(self) -> float:
        """Seconds until the breaker closes (0 when already closed)."""
        return max(await self.blocked_until() - self._clock(), 0.0)

    async def trip(self, retry_after: str | float | None = None) -> float:
        """Open the breaker for the clamped Retry-After duration.

        A trip never shortens an existing cooldown.  Returns the cooldown
        applied, in seconds.
        """
        cooldown = self._clamp(self._parse_retry_after(retry_after))
        until = self._clock() + cooldown
        current = await self.blocked_until()
        if until > current:
            await self._store.set(self._key, until)
        self._logger.warning(
            "circuit_breaker_tripped",
            breaker=self._name,
            cooldown_seconds=cooldown,
            retry_after=retry_after,
        )
        return cooldown

    async def reset(self) -> None:
        await self._store.delete(self._key)
        self._logger.info("circuit_breaker_reset", breaker=self._name)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _clamp(self, seconds: float) -> float:
        return min(max(seconds, self._min), self._max)

    def _parse_retry_after(self, retry_after: str | float | None) -> float:
        """Interpret a Retry-After value as seconds from now.

        Accepts a number, a numeric string, or an HTTP-date.
        """
        if retry_after is None:
            return self._default
        if isinstance(retry_after, (int, float)):
            return float(retry_after)
        text = retry_after.strip()
        try:
            return float(int(text))
        except ValueError:
            pass
        try:
            retry_at = parsedate_to_datetime(text)
        except (TypeError, ValueError):
            return self._default
        if retry_at is None:
            return self._default
        return retry_at.timestamp() - self._clock()
