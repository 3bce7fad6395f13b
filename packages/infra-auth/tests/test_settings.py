"""Tests for BackendSettings and AuthSettings env loading and validation."""

from __future__ import annotations

import pytest

from reviewdesk.infra.auth.settings import (
    AuthSettings,
    BackendSettings,
    get_auth_settings,
    get_backend_settings,
)


@pytest.mark.unit
class TestBackendSettings:
    """Test BackendSettings defaults, env loading and configuration checks."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BACKEND_URL", raising=False)
        monkeypatch.delenv("BACKEND_ANON_KEY", raising=False)

        settings = BackendSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.url == ""
        assert settings.anon_key == ""
        assert settings.timeout == 10.0
        assert settings.is_configured() is False

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BACKEND_URL", "https://abc.example.co/")
        monkeypatch.setenv("BACKEND_ANON_KEY", "anon")
        monkeypatch.setenv("BACKEND_TIMEOUT", "3.5")

        settings = BackendSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.url == "https://abc.example.co"
        assert settings.anon_key == "anon"
        assert settings.timeout == 3.5
        assert settings.is_configured() is True

    @pytest.mark.parametrize(
        ("url", "key"),
        [
            ("https://placeholder.example.co", "anon"),
            ("https://abc.example.co", "placeholder-key"),
            ("https://abc.example.co", ""),
        ],
    )
    def test_placeholder_or_missing_values_are_not_configured(self, url: str, key: str) -> None:
        settings = BackendSettings(url=url, anon_key=key, _env_file=None)  # type: ignore[call-arg]
        assert settings.is_configured() is False

    def test_anon_key_hidden_from_repr(self) -> None:
        settings = BackendSettings(url="https://abc.example.co", anon_key="s3cret", _env_file=None)  # type: ignore[call-arg]
        assert "s3cret" not in repr(settings)

    @pytest.mark.parametrize("url", ["ftp://abc.example.co", "abc.example.co"])
    def test_non_http_url_rejected(self, url: str) -> None:
        with pytest.raises(ValueError, match="must be an http"):
            BackendSettings(url=url, anon_key="k", _env_file=None)  # type: ignore[call-arg]

    def test_whitespace_around_url_ignored(self) -> None:
        settings = BackendSettings(url="  https://abc.example.co/ ", anon_key="k", _env_file=None)  # type: ignore[call-arg]
        assert settings.url == "https://abc.example.co"

    def test_get_backend_settings_is_cached(self) -> None:
        get_backend_settings.cache_clear()
        try:
            assert get_backend_settings() is get_backend_settings()
        finally:
            get_backend_settings.cache_clear()


@pytest.mark.unit
class TestAuthSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AUTH_SESSION_TIMEOUT_SECONDS", raising=False)
        monkeypatch.delenv("AUTH_EXPIRY_WARNING_SECONDS", raising=False)

        settings = AuthSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.session_timeout_seconds == 1800
        assert settings.expiry_warning_seconds == 300

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTH_SESSION_TIMEOUT_SECONDS", "600")
        settings = AuthSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.session_timeout_seconds == 600

    def test_rejects_too_short_timeout(self) -> None:
        with pytest.raises(ValueError):
            AuthSettings(session_timeout_seconds=5, _env_file=None)  # type: ignore[call-arg]

    def test_get_auth_settings_is_cached(self) -> None:
        get_auth_settings.cache_clear()
        try:
            assert get_auth_settings() is get_auth_settings()
        finally:
            get_auth_settings.cache_clear()
