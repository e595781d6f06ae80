"""Scene FastAPI application entry point.

Wires together providers and services via dependency injection.  Loads
configuration from the environment, ``.env`` and ``config/config.yaml``,
and configures structured logging.

Also provides :func:`build_client`, the client-side wiring (resolver and
search session factory) used by the CLI and by scripts.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from scene import __version__
from scene.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from scene.api.routes import functions_router
from scene.api.routes import router as api_router
from scene.config.settings import Settings
from scene.interfaces.artist_store import IArtistStore
from scene.interfaces.batch_image_provider import IBatchImageProvider
from scene.models.search import SearchSnapshot
from scene.providers.batch.http_batch_provider import HttpBatchImageProvider
from scene.providers.cache.memory_cache import MemoryCacheProvider
from scene.providers.music.spotify_provider import SpotifyArtistProvider
from scene.providers.search.musicbrainz_provider import MusicBrainzSearchProvider
from scene.providers.store.sqlite_store import SQLiteArtistStore
from scene.providers.store.supabase_store import SupabaseArtistStore
from scene.services.artist_search import ArtistSearchSession
from scene.services.backfill_service import ImageBackfillService
from scene.services.batch_image_service import BatchImageService
from scene.services.circuit_breaker import CircuitBreaker
from scene.services.image_resolver import ArtistImageResolver
from scene.utils.concurrency import BackgroundTaskQueue
from scene.utils.errors import ConfigurationError
from scene.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------


def _build_store(app_settings: Settings, http_client: httpx.AsyncClient) -> IArtistStore:
    """Select the artist datastore named by ``datastore_backend``."""
    backend = app_settings.datastore_backend.lower()
    if backend == "sqlite":
        return SQLiteArtistStore(db_path=app_settings.sqlite_db_path)
    if backend == "supabase":
        if not (app_settings.supabase_url and app_settings.supabase_service_role_key):
            raise ConfigurationError(
                message="SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured",
                provider_name="supabase",
            )
        return SupabaseArtistStore(
            base_url=app_settings.supabase_url,
            api_key=app_settings.supabase_service_role_key,
            http_client=http_client,
        )
    raise ConfigurationError(message=f"Unknown datastore backend: {app_settings.datastore_backend}")


def _build_breaker(app_settings: Settings) -> CircuitBreaker:
    return CircuitBreaker(
        "spotify",
        min_cooldown=app_settings.breaker_min_cooldown,
        max_cooldown=app_settings.breaker_max_cooldown,
        default_cooldown=app_settings.breaker_default_cooldown,
    )


def _build_batch_service(
    app_settings: Settings,
    store: IArtistStore,
    http_client: httpx.AsyncClient,
    breaker: CircuitBreaker,
    persister: BackgroundTaskQueue,
) -> tuple[BatchImageService, SpotifyArtistProvider]:
    # Missing credentials are fatal: the batch endpoint cannot work without them.
    app_settings.require_spotify_credentials()
    spotify = SpotifyArtistProvider(settings=app_settings, http_client=http_client)
    service = BatchImageService(
        store=store,
        image_provider=spotify,
        breaker=breaker,
        persister=persister,
        max_names=app_settings.batch_max_names,
        request_delay=app_settings.batch_request_delay,
    )
    return service, spotify


def _build_all(app_settings: Settings, http_client: httpx.AsyncClient | None = None) -> dict[str, Any]:
    """Construct every server-side provider and service.

    Returns a flat dict of named components to be stored on ``app.state``.

    Raises
    ------
    ConfigurationError
        Spotify credentials or the selected datastore are not configured.
    """
    http_client = http_client or httpx.AsyncClient(timeout=30.0)
    store = _build_store(app_settings, http_client)
    breaker = _build_breaker(app_settings)
    persister = BackgroundTaskQueue()
    batch_service, spotify = _build_batch_service(app_settings, store, http_client, breaker, persister)

    backfill_service = ImageBackfillService(
        store=store,
        image_provider=spotify,
        breaker=breaker,
        http_client=http_client,
        stale_sample=app_settings.backfill_stale_sample,
        stale_pool=app_settings.backfill_stale_pool,
        limit=app_settings.backfill_limit,
        request_delay=app_settings.batch_request_delay,
    )

    provider_registry: dict[str, Any] = {
        "spotify": spotify.is_available(),
        "datastore": store.get_provider_name(),
    }

    return {
        "http_client": http_client,
        "store": store,
        "breaker": breaker,
        "persister": persister,
        "batch_service": batch_service,
        "backfill_service": backfill_service,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Standalone helpers (CLI / scripting)
# ---------------------------------------------------------------------------


def build_services(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Construct the server-side services for CLI or scripting use (e.g. the backfill job)."""
    return _build_all(custom_settings or settings)


def build_client(
    app_settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Construct the client-side resolver and a search session factory.

    The resolver's remote tier is the deployed batch endpoint when
    ``batch_endpoint_url`` is set, otherwise an in-process
    :class:`BatchImageService` (which then needs Spotify credentials).

    Returns a dict with ``http_client``, ``store``, ``resolver``,
    ``new_search_session`` and, for in-process use, ``persister``.
    """
    s = app_settings or settings
    http_client = http_client or httpx.AsyncClient(timeout=30.0)
    store = _build_store(s, http_client)
    persister = BackgroundTaskQueue()

    batch_provider: IBatchImageProvider
    if s.batch_endpoint_url:
        batch_provider = HttpBatchImageProvider(endpoint_url=s.batch_endpoint_url, http_client=http_client)
    else:
        batch_provider, _spotify = _build_batch_service(s, store, http_client, _build_breaker(s), persister)

    image_cache = MemoryCacheProvider(
        max_size=s.image_cache_max_size,
        ttl=s.image_cache_ttl,
        name="artist_images",
    )
    resolver = ArtistImageResolver(
        store=store,
        batch_provider=batch_provider,
        image_cache=image_cache,
        max_remote_names=s.resolver_max_remote_names,
        batch_size=s.resolver_batch_size,
        premium_hosts=s.premium_image_hosts,
    )

    search_cache = MemoryCacheProvider(
        max_size=s.search_cache_max_size,
        ttl=s.search_cache_ttl,
        name="artist_search",
    )
    remote_search = MusicBrainzSearchProvider(settings=s)

    def new_search_session(
        on_change: Callable[[SearchSnapshot], None] | None = None,
    ) -> ArtistSearchSession:
        return ArtistSearchSession(
            store=store,
            remote=remote_search,
            result_cache=search_cache,
            min_chars=s.search_min_chars,
            debounce_ms=s.search_debounce_ms,
            max_results=s.search_max_results,
            sufficient_local=s.search_sufficient_local,
            on_change=on_change,
        )

    return {
        "http_client": http_client,
        "store": store,
        "persister": persister,
        "resolver": resolver,
        "new_search_session": new_search_session,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


def _make_lifespan(app_settings: Settings) -> Callable[[FastAPI], Any]:
    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        """Build all services on startup, flush and close them on shutdown."""
        components = _build_all(app_settings)
        for key, value in components.items():
            setattr(application.state, key, value)

        store = components["store"]
        if isinstance(store, SQLiteArtistStore):
            await store.initialize()

        _logger.info(
            "app_startup",
            version=__version__,
            environment=app_settings.app_env,
            datastore=store.get_provider_name(),
        )

        yield

        # -- Shutdown: let pending background writes land, then close the client --
        await components["persister"].close()
        http_client: httpx.AsyncClient = components["http_client"]
        await http_client.aclose()
        _logger.info("app_shutdown", message="HTTP client closed")

    return _lifespan


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    s = app_settings or settings
    application = FastAPI(
        title="Scene API",
        version=__version__,
        description=(
            "Backend functions for Scene: batch artist image lookup with a "
            "Spotify circuit breaker, and the artist image backfill job."
        ),
        lifespan=_make_lifespan(s),
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=s.cors_allowed_origins)

    # -- Routes --
    application.include_router(functions_router)
    application.include_router(api_router)

    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run(
        "scene.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    run()
