"""Unit tests for MemoryCacheProvider."""

from __future__ import annotations

import pytest

from scene.providers.cache.memory_cache import MemoryCacheProvider


class TestMemoryCacheProvider:
    @pytest.fixture()
    def cache(self, clock) -> MemoryCacheProvider:  # noqa: ANN001
        return MemoryCacheProvider(max_size=3, ttl=300, timer=clock)

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, cache: MemoryCacheProvider) -> None:
        assert await cache.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache: MemoryCacheProvider) -> None:
        await cache.set("bicep", "https://i.scdn.co/image/1")
        assert await cache.get("bicep") == "https://i.scdn.co/image/1"

    @pytest.mark.asyncio
    async def test_delete_and_exists(self, cache: MemoryCacheProvider) -> None:
        await cache.set("bicep", "url")
        assert await cache.exists("bicep") is True
        await cache.delete("bicep")
        assert await cache.exists("bicep") is False
        await cache.delete("bicep")  # no-op

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, cache: MemoryCacheProvider, clock) -> None:  # noqa: ANN001
        await cache.set("bic", ["result"])
        clock.advance(299)
        assert await cache.get("bic") == ["result"]
        clock.advance(2)
        assert await cache.get("bic") is None

    @pytest.mark.asyncio
    async def test_evicts_when_full(self, cache: MemoryCacheProvider) -> None:
        for key in ("a", "b", "c", "d"):
            await cache.set(key, key)
        assert len(cache) == 3
        assert await cache.get("d") == "d"

    @pytest.mark.asyncio
    async def test_clear(self, cache: MemoryCacheProvider) -> None:
        await cache.set("a", 1)
        await cache.clear()
        assert len(cache) == 0
