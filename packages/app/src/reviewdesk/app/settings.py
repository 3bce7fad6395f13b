"""Settings read by :func:`reviewdesk.app.create_app_store`."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

StorageBackend = Literal["memory", "file", "redis"]


class TenantCacheSettings(BaseSettings):
    """``TENANT_CACHE_EXPIRY_SECONDS``: age after which a full tenant fetch is redone."""

    model_config = SettingsConfigDict(env_prefix="TENANT_", extra="ignore")

    cache_expiry_seconds: int = Field(
        default=5 * 60,
        ge=0,
        description="How long a full tenant fetch stays valid",
    )


class AppSettings(BaseSettings):
    """Choice of persisted-state backend (``APP_STORAGE_BACKEND`` and friends).

    Example:
        >>> AppSettings(storage_backend=" Memory ", _env_file=None).storage_backend
        'memory'
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    storage_backend: StorageBackend = Field(
        default="file",
        description="Where persisted store state lives: memory, file or redis",
    )
    storage_dir: Path = Field(
        default=Path(".reviewdesk"),
        description="Directory for the file backend",
    )
    storage_namespace: str = Field(
        default="reviewdesk",
        min_length=1,
        description="Key prefix for the redis backend",
    )

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v
