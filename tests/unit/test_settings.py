"""Unit tests for Settings loading and the credential checks."""

from __future__ import annotations

import pytest

from scene.config.settings import Settings
from scene.utils.errors import ConfigurationError


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)
        assert s.search_min_chars == 3
        assert s.search_debounce_ms == 500
        assert s.batch_max_names == 20
        assert s.breaker_default_cooldown == 30
        assert "i.scdn.co" in s.premium_image_hosts

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SEARCH_DEBOUNCE_MS", "250")
        monkeypatch.setenv("DATASTORE_BACKEND", "sqlite")
        s = Settings(_env_file=None)
        assert s.search_debounce_ms == 250
        assert s.datastore_backend == "sqlite"

    def test_constructor_beats_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "from-env")
        s = Settings(_env_file=None, spotify_client_id="from-kwargs")
        assert s.spotify_client_id == "from-kwargs"


class TestSpotifyCredentials:
    def test_present(self, settings: Settings) -> None:
        assert settings.has_spotify_credentials() is True
        settings.require_spotify_credentials()

    @pytest.mark.parametrize(
        ("client_id", "client_secret"),
        [("", ""), ("id-only", ""), ("", "secret-only")],
    )
    def test_missing_is_fatal(self, client_id: str, client_secret: str) -> None:
        s = Settings(_env_file=None, spotify_client_id=client_id, spotify_client_secret=client_secret)
        assert s.has_spotify_credentials() is False
        with pytest.raises(ConfigurationError) as exc_info:
            s.require_spotify_credentials()
        assert exc_info.value.provider_name == "spotify"
