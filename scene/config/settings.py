"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK (Junior Developer Guide) ───────────────────────
#
# This class uses pydantic-settings to read configuration from FOUR
# sources (in priority order):
#
#   1. **Constructor kwargs** - Settings(spotify_client_id="...") in tests
#   2. **Environment variables** - e.g., SPOTIFY_CLIENT_ID=abc123
#   3. **.env file** - key=value lines in the project root .env file
#   4. **config/config.yaml** - non-secret tunables checked into the repo
#      (debounce windows, cache sizes, breaker cooldowns)
#
# The mapping is automatic: field name `spotify_client_id` maps to env var
# `SPOTIFY_CLIENT_ID` and to the YAML key `spotify_client_id`.
#
# SECRETS (Spotify client secret, Supabase service-role key) belong in the
# environment or .env only, never in config.yaml.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from scene.utils.errors import ConfigurationError


class Settings(BaseSettings):
    """Scene application settings.

    Environment variables override YAML defaults. Loaded from .env when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="config/config.yaml",
        extra="ignore",
    )

    # === External artist API (server-side only) ===
    spotify_client_id: str = ""
    spotify_client_secret: str = ""

    # === Datastore ===
    # "supabase" talks to PostgREST; "sqlite" is the local development store.
    datastore_backend: str = "supabase"
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    sqlite_db_path: str = "data/scene.db"

    # === Client-side resolver ===
    # Empty = call the batch service in-process instead of over HTTP.
    batch_endpoint_url: str = ""
    image_cache_max_size: int = 5000
    image_cache_ttl: int = 86400  # seconds - outlives any session
    resolver_max_remote_names: int = 50
    resolver_batch_size: int = 20

    # === Search session ===
    search_cache_ttl: int = 300  # 5 minutes
    search_cache_max_size: int = 100
    search_min_chars: int = 3
    search_debounce_ms: int = 500
    search_max_results: int = 6
    search_sufficient_local: int = 3

    # === Remote artist search (MusicBrainz) ===
    musicbrainz_app_name: str = "scene"
    musicbrainz_app_version: str = "0.1.0"
    musicbrainz_contact: str = ""

    # === Batch endpoint ===
    batch_max_names: int = 20
    batch_request_delay: float = 0.2  # seconds between external calls

    # === Circuit breaker ===
    breaker_min_cooldown: int = 5
    breaker_max_cooldown: int = 120
    breaker_default_cooldown: int = 30

    # Image URLs served from these hosts override lower-confidence matches.
    premium_image_hosts: list[str] = ["i.scdn.co", "mosaic.scdn.co", "image-cdn-ak.spotifycdn.com"]

    # === Backfill job ===
    backfill_stale_sample: int = 50
    backfill_stale_pool: int = 200
    backfill_limit: int = 500

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_allowed_origins: list[str] = ["*"]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML sits below .env so deploy-time variables always win.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def has_spotify_credentials(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)

    def require_spotify_credentials(self) -> None:
        """Raise :class:`ConfigurationError` unless both Spotify credentials are set."""
        if not self.has_spotify_credentials():
            raise ConfigurationError(
                message="SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be configured",
                provider_name="spotify",
            )
