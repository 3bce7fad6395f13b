"""Connection settings for the Redis state storage backend.

Environment Variables:
    REDIS_URL: Complete connection URL. When set, its host, port, db and
        password replace the individual values below.
    REDIS_HOST, REDIS_PORT, REDIS_DB, REDIS_PASSWORD: Individual parts.
    REDIS_SOCKET_TIMEOUT: Seconds a state read or write may block.
    REDIS_STATE_TTL_SECONDS: Optional expiry for persisted state keys.
"""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SCHEMES = ("redis", "rediss")


class RedisSettings(BaseSettings):
    """Where the shared state storage lives.

    Example:
        >>> RedisSettings(host="cache", port=6380).connection_url
        'redis://cache:6380/0'
        >>> RedisSettings.from_url("redis://myhost:6379/2").db
        2
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = Field(default=None, description="Complete redis:// or rediss:// URL")
    host: str = Field(default="localhost")
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0, le=15)
    password: SecretStr | None = Field(default=None)
    socket_timeout: float = Field(
        default=2.0,
        gt=0,
        description="State reads happen inline with store actions, so keep this short",
    )
    state_ttl_seconds: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _apply_url(self) -> RedisSettings:
        if not self.url:
            return self
        parsed = urlparse(self.url)
        if parsed.scheme not in _SCHEMES:
            msg = f"Invalid Redis URL scheme: {parsed.scheme!r}"
            raise ValueError(msg)
        path = parsed.path.strip("/")
        if path and not (path.isdigit() and int(path) <= 15):
            msg = f"Invalid database number in Redis URL: {parsed.path!r}"
            raise ValueError(msg)
        self.host = parsed.hostname or self.host
        self.port = parsed.port or self.port
        self.db = int(path) if path else 0
        if parsed.password:
            self.password = SecretStr(parsed.password)
        return self

    @classmethod
    def from_url(cls, url: str, **overrides: object) -> RedisSettings:
        return cls(url=url, _env_file=None, **overrides)  # type: ignore[call-arg]

    @property
    def connection_url(self) -> str:
        if self.url:
            return self.url
        auth = f":{self.password.get_secret_value()}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"
