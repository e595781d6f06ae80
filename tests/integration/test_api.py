"""Integration tests for the FastAPI endpoints using TestClient."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scene import __version__
from scene.api.middleware import ErrorHandlingMiddleware, configure_cors
from scene.api.routes import functions_router
from scene.api.routes import router as api_router
from scene.models.artist import ArtistImage, ExternalArtist, ShowArtist
from scene.services.backfill_service import BackfillReport
from scene.services.batch_image_service import BatchImageService
from scene.services.circuit_breaker import CircuitBreaker
from scene.utils.concurrency import BackgroundTaskQueue
from scene.utils.errors import DatastoreError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_app(
    batch_service: object,
    backfill_service: object | None = None,
    breaker: CircuitBreaker | None = None,
    spotify_available: bool = True,
) -> FastAPI:
    """Create a test FastAPI app with services placed on app.state directly."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    configure_cors(app, allowed_origins=["*"])
    app.include_router(functions_router)
    app.include_router(api_router)

    app.state.batch_service = batch_service
    app.state.backfill_service = backfill_service or MagicMock()
    app.state.breaker = breaker or CircuitBreaker("spotify")
    app.state.provider_registry = {"spotify": spotify_available, "datastore": "mock"}
    return app


@pytest.fixture()
def fake_batch() -> MagicMock:
    service = MagicMock()
    service.fetch_images = AsyncMock(
        return_value={"bicep": ArtistImage(image_url="https://i.scdn.co/image/bicep", spotify_id="sp-bicep")}
    )
    return service


# ---------------------------------------------------------------------------
# POST /batch-artist-images
# ---------------------------------------------------------------------------


class TestBatchArtistImages:
    def test_returns_images_keyed_by_lowercased_name(self, fake_batch: MagicMock) -> None:
        client = TestClient(_build_app(fake_batch))
        response = client.post("/batch-artist-images", json={"names": ["Bicep", "", 42, "Bonobo"]})

        assert response.status_code == 200
        assert response.json() == {
            "artists": {"bicep": {"image_url": "https://i.scdn.co/image/bicep", "spotify_id": "sp-bicep"}}
        }
        fake_batch.fetch_images.assert_awaited_once_with(["Bicep", "Bonobo"])

    def test_empty_names_short_circuits(self, fake_batch: MagicMock) -> None:
        client = TestClient(_build_app(fake_batch))

        for body in ({"names": []}, {"names": ["  ", None]}, {}):
            response = client.post("/batch-artist-images", json=body)
            assert response.status_code == 200
            assert response.json() == {"artists": {}}
        fake_batch.fetch_images.assert_not_awaited()

    def test_unexpected_failure_returns_error_body(self, fake_batch: MagicMock) -> None:
        fake_batch.fetch_images.side_effect = RuntimeError("store exploded")
        client = TestClient(_build_app(fake_batch))

        response = client.post("/batch-artist-images", json={"names": ["Bicep"]})

        assert response.status_code == 500
        assert response.json() == {"error": "store exploded", "artists": {}}

    def test_cors_preflight(self, fake_batch: MagicMock) -> None:
        client = TestClient(_build_app(fake_batch))
        response = client.options(
            "/batch-artist-images",
            headers={
                "Origin": "https://scene.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, apikey",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_open_breaker_still_serves_show_artist_images(
        self, mock_store: MagicMock, mock_image_provider: MagicMock
    ) -> None:
        breaker = CircuitBreaker("spotify")
        asyncio.run(breaker.trip("60"))
        mock_store.find_show_artist_images.return_value = [
            ShowArtist(artist_name="Bicep", artist_image_url="https://i.scdn.co/image/bicep"),
        ]
        mock_image_provider.search_artist.return_value = ExternalArtist(id="sp-x", name="X")
        service = BatchImageService(
            store=mock_store,
            image_provider=mock_image_provider,
            breaker=breaker,
            persister=BackgroundTaskQueue(),
        )
        client = TestClient(_build_app(service, breaker=breaker))

        response = client.post("/batch-artist-images", json={"names": ["Bicep", "Bonobo"]})

        assert response.status_code == 200
        assert list(response.json()["artists"]) == ["bicep"]
        mock_image_provider.search_artist.assert_not_awaited()


# ---------------------------------------------------------------------------
# POST /backfill-artist-images
# ---------------------------------------------------------------------------


class TestBackfillArtistImages:
    def test_returns_report(self, fake_batch: MagicMock) -> None:
        backfill = MagicMock()
        backfill.run = AsyncMock(return_value=BackfillReport(updated=4, total=9, stale_cleared=2))
        client = TestClient(_build_app(fake_batch, backfill_service=backfill))

        response = client.post("/backfill-artist-images")

        assert response.status_code == 200
        assert response.json() == {"updated": 4, "total": 9, "stale_cleared": 2}

    def test_datastore_failure_becomes_json_500(self, fake_batch: MagicMock) -> None:
        backfill = MagicMock()
        backfill.run = AsyncMock(side_effect=DatastoreError("connection refused", provider_name="supabase"))
        client = TestClient(_build_app(fake_batch, backfill_service=backfill))

        response = client.post("/backfill-artist-images")

        assert response.status_code == 500
        assert response.json() == {"error": "DatastoreError", "detail": "connection refused"}


# ---------------------------------------------------------------------------
# GET /api/v1/health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_healthy_with_closed_breaker(self, fake_batch: MagicMock) -> None:
        client = TestClient(_build_app(fake_batch))
        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["version"] == __version__
        assert body["providers"]["spotify_breaker"] == "CLOSED"
        assert body["providers"]["spotify_breaker_remaining"] == 0.0
        assert body["providers"]["datastore"] == "mock"

    def test_open_breaker_is_reported(self, fake_batch: MagicMock) -> None:
        breaker = CircuitBreaker("spotify")
        asyncio.run(breaker.trip("60"))
        client = TestClient(_build_app(fake_batch, breaker=breaker))

        providers = client.get("/api/v1/health").json()["providers"]

        assert providers["spotify_breaker"] == "OPEN"
        assert 0 < providers["spotify_breaker_remaining"] <= 60

    def test_degraded_without_spotify(self, fake_batch: MagicMock) -> None:
        client = TestClient(_build_app(fake_batch, spotify_available=False))
        assert client.get("/api/v1/health").json()["status"] == "degraded"
