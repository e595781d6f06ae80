"""Unit tests for ImageBackfillService: stale sweep and Spotify backfill."""

from __future__ import annotations

import random
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from scene.models.artist import ExternalArtist, ShowArtist
from scene.services.backfill_service import BackfillReport, ImageBackfillService
from scene.services.circuit_breaker import CircuitBreaker
from scene.utils.errors import ProviderUnavailableError, RateLimitError


def _head_client(dead: set[str], unreachable: set[str] | None = None) -> httpx.AsyncClient:
    unreachable = unreachable or set()

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(404 if url in dead else 200)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _service(
    store: MagicMock,
    provider: MagicMock,
    http_client: httpx.AsyncClient,
    breaker: CircuitBreaker,
) -> ImageBackfillService:
    return ImageBackfillService(
        store=store,
        image_provider=provider,
        breaker=breaker,
        http_client=http_client,
        rng=random.Random(7),
        sleep=AsyncMock(return_value=None),
    )


@pytest.fixture()
def breaker(clock) -> CircuitBreaker:  # noqa: ANN001
    return CircuitBreaker("spotify", clock=clock)


# ======================================================================
# Stale sweep
# ======================================================================


class TestStaleSweep:
    @pytest.mark.asyncio
    async def test_dead_and_unreachable_urls_are_cleared(
        self, mock_store: MagicMock, mock_image_provider: MagicMock, breaker: CircuitBreaker
    ) -> None:
        mock_store.list_show_artists_with_images.return_value = [
            ShowArtist(id="1", artist_name="Alive", artist_image_url="https://i.scdn.co/image/alive"),
            ShowArtist(id="2", artist_name="Dead", artist_image_url="https://i.scdn.co/image/dead"),
            ShowArtist(id="3", artist_name="Gone", artist_image_url="https://gone.example/img.jpg"),
        ]
        client = _head_client(
            dead={"https://i.scdn.co/image/dead"},
            unreachable={"https://gone.example/img.jpg"},
        )
        service = _service(mock_store, mock_image_provider, client, breaker)

        cleared = await service.clear_stale_images()

        assert cleared == 2
        cleared_ids = sorted(call.args[0] for call in mock_store.clear_show_artist_image.await_args_list)
        assert cleared_ids == ["2", "3"]

    @pytest.mark.asyncio
    async def test_sample_is_bounded(
        self, mock_store: MagicMock, mock_image_provider: MagicMock, breaker: CircuitBreaker
    ) -> None:
        mock_store.list_show_artists_with_images.return_value = [
            ShowArtist(id=str(i), artist_name=f"A{i}", artist_image_url=f"https://i.scdn.co/image/{i}")
            for i in range(120)
        ]
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = _service(mock_store, mock_image_provider, client, breaker)

        assert await service.clear_stale_images() == 0
        assert len(requested) == 50
        mock_store.list_show_artists_with_images.assert_awaited_once_with(200)


# ======================================================================
# Backfill
# ======================================================================


class TestBackfill:
    @pytest.mark.asyncio
    async def test_known_ids_looked_up_directly_then_search(
        self, mock_store: MagicMock, mock_image_provider: MagicMock, breaker: CircuitBreaker
    ) -> None:
        mock_store.list_show_artists_missing_images.return_value = [
            ShowArtist(id="10", artist_name="Bicep", spotify_artist_id="sp-bicep"),
            ShowArtist(id="11", artist_name="bicep"),
            ShowArtist(id="12", artist_name="Bonobo"),
        ]
        mock_image_provider.get_artist.return_value = ExternalArtist(
            id="sp-bicep", name="Bicep", image_url="https://i.scdn.co/image/bicep"
        )
        mock_image_provider.search_artist.return_value = ExternalArtist(
            id="sp-bonobo", name="Bonobo", image_url="https://i.scdn.co/image/bonobo"
        )
        service = _service(mock_store, mock_image_provider, _head_client(set()), breaker)

        updated, total = await service.backfill_missing()

        assert (updated, total) == (3, 3)
        mock_image_provider.get_artist.assert_awaited_once_with("sp-bicep")
        mock_image_provider.search_artist.assert_awaited_once_with("Bonobo")
        mock_store.set_show_artist_image.assert_any_await("11", "https://i.scdn.co/image/bicep", "sp-bicep")
        mock_store.set_show_artist_image.assert_any_await("12", "https://i.scdn.co/image/bonobo", "sp-bonobo")

    @pytest.mark.asyncio
    async def test_rate_limit_trips_breaker_and_stops_lookups(
        self, mock_store: MagicMock, mock_image_provider: MagicMock, breaker: CircuitBreaker
    ) -> None:
        mock_store.list_show_artists_missing_images.return_value = [
            ShowArtist(id="1", artist_name="First"),
            ShowArtist(id="2", artist_name="Second"),
        ]
        mock_image_provider.search_artist.side_effect = RateLimitError(retry_after="30")
        service = _service(mock_store, mock_image_provider, _head_client(set()), breaker)

        assert await service.backfill_missing() == (0, 2)
        assert mock_image_provider.search_artist.await_count == 1
        assert await breaker.is_open() is True

    @pytest.mark.asyncio
    async def test_unavailable_lookup_skips_name(
        self, mock_store: MagicMock, mock_image_provider: MagicMock, breaker: CircuitBreaker
    ) -> None:
        mock_store.list_show_artists_missing_images.return_value = [
            ShowArtist(id="1", artist_name="First"),
            ShowArtist(id="2", artist_name="Second"),
        ]
        mock_image_provider.search_artist.side_effect = [
            ProviderUnavailableError("timeout"),
            ExternalArtist(id="sp-2", name="Second", image_url="https://i.scdn.co/image/2"),
        ]
        service = _service(mock_store, mock_image_provider, _head_client(set()), breaker)

        assert await service.backfill_missing() == (1, 2)

    @pytest.mark.asyncio
    async def test_nothing_to_backfill(
        self, mock_store: MagicMock, mock_image_provider: MagicMock, breaker: CircuitBreaker
    ) -> None:
        service = _service(mock_store, mock_image_provider, _head_client(set()), breaker)
        assert await service.backfill_missing() == (0, 0)
        mock_image_provider.search_artist.assert_not_awaited()


class TestBackfillRun:
    @pytest.mark.asyncio
    async def test_run_reports_both_passes(
        self, mock_store: MagicMock, mock_image_provider: MagicMock, breaker: CircuitBreaker
    ) -> None:
        mock_store.list_show_artists_with_images.return_value = [
            ShowArtist(id="1", artist_name="Dead", artist_image_url="https://i.scdn.co/image/dead"),
        ]
        mock_store.list_show_artists_missing_images.return_value = [
            ShowArtist(id="1", artist_name="Dead"),
        ]
        mock_image_provider.search_artist.return_value = ExternalArtist(
            id="sp-dead", name="Dead", image_url="https://i.scdn.co/image/fresh"
        )
        service = _service(
            mock_store, mock_image_provider, _head_client({"https://i.scdn.co/image/dead"}), breaker
        )

        report = await service.run()

        assert report == BackfillReport(updated=1, total=1, stale_cleared=1)
