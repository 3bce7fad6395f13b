"""Where the hosted backend lives and how long sessions are trusted.

Environment Variables:
    BACKEND_URL: Base URL serving both ``/auth/v1`` and ``/rest/v1``.
    BACKEND_ANON_KEY: Public key sent as the ``apikey`` header.
    BACKEND_TIMEOUT: Per-request timeout in seconds.
    AUTH_SESSION_TIMEOUT_SECONDS: Inactivity after which a session is idle.
    AUTH_EXPIRY_WARNING_SECONDS: Remaining token lifetime that counts as
        "expiring soon".
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Scaffolded projects ship values like "https://placeholder.example.co".
_PLACEHOLDER_MARKER = "placeholder"


class BackendSettings(BaseSettings):
    """Connection details for the identity and data APIs.

    An empty or placeholder URL/key is accepted at load time so the stores can
    start and report "Backend not configured" instead of crashing.

    Example:
        >>> BackendSettings(url="https://abc.example.co/", anon_key="key").url
        'https://abc.example.co'
    """

    model_config = SettingsConfigDict(
        env_prefix="BACKEND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(default="")
    anon_key: str = Field(default="", repr=False)
    timeout: float = Field(default=10.0, gt=0, le=120)

    @field_validator("url")
    @classmethod
    def _http_base_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith(("http://", "https://")):
            msg = "BACKEND_URL must be an http(s) URL"
            raise ValueError(msg)
        return v

    def is_configured(self) -> bool:
        """True when both values are present and neither is a placeholder."""
        values = (self.url, self.anon_key)
        return all(values) and not any(_PLACEHOLDER_MARKER in v for v in values)


class AuthSettings(BaseSettings):
    """Thresholds for the session store's derived flags.

    Example:
        >>> AuthSettings(_env_file=None).session_timeout_seconds
        1800
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    session_timeout_seconds: int = Field(default=1800, ge=60)
    expiry_warning_seconds: int = Field(default=300, ge=0)


@lru_cache(maxsize=1)
def get_backend_settings() -> BackendSettings:
    return BackendSettings()


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    return AuthSettings()
