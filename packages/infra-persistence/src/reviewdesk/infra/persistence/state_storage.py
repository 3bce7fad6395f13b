"""Durable key-value backends for persisted store state.

Three implementations of :class:`StateStoragePort`:

- :class:`InMemoryStateStorage` for tests and throwaway processes.
- :class:`FileStateStorage`: one JSON file per key under a directory, written
  through a temporary file and ``os.replace`` so a crash never leaves a
  half-written value.
- :class:`RedisStateStorage`: keys under a namespace prefix on a synchronous
  redis-py client, for processes sharing state across hosts.

All backends raise :class:`StateStorageError` on failure.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Any

import redis

from reviewdesk.foundation.domain.exceptions import StateStorageError
from reviewdesk.infra.persistence.redis_settings import RedisSettings

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class InMemoryStateStorage:
    """Process-local storage backed by a dict."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FileStateStorage:
    """One file per key under ``directory``.

    Args:
        directory: Directory holding the state files; created on first write.

    Raises:
        ValueError: On keys that are not plain file-name safe tokens.
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StateStorageError(key, str(exc)) from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StateStorageError(key, str(exc)) from exc

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StateStorageError(key, str(exc)) from exc

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            msg = f"Invalid state storage key: {key!r}"
            raise ValueError(msg)
        return self._directory / f"{key}.json"


class RedisStateStorage:
    """Keys stored as ``{namespace}:{key}`` on a synchronous Redis client.

    Args:
        client: redis-py client (``redis.Redis``) or a compatible object.
        namespace: Prefix isolating this application's keys.
        ttl_seconds: Expiry applied on every write; ``None`` keeps keys forever.

    Example:
        >>> storage = RedisStateStorage.from_settings(RedisSettings(), namespace="reviewdesk")
    """

    def __init__(
        self, client: Any, namespace: str = "reviewdesk", ttl_seconds: int | None = None
    ) -> None:
        self._client = client
        self._namespace = namespace
        self._ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: RedisSettings, namespace: str = "reviewdesk") -> RedisStateStorage:
        """Create storage with a client built from ``settings``.

        The connection is opened lazily by redis-py on first command.
        """
        client = redis.Redis.from_url(
            settings.connection_url,
            socket_timeout=settings.socket_timeout,
            socket_connect_timeout=settings.socket_timeout,
            decode_responses=True,
        )
        return cls(client, namespace=namespace, ttl_seconds=settings.state_ttl_seconds)

    def get_item(self, key: str) -> str | None:
        try:
            value = self._client.get(self._key(key))
        except redis.RedisError as exc:
            raise StateStorageError(key, str(exc)) from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set_item(self, key: str, value: str) -> None:
        try:
            if self._ttl_seconds is None:
                self._client.set(self._key(key), value)
            else:
                self._client.set(self._key(key), value, ex=self._ttl_seconds)
        except redis.RedisError as exc:
            raise StateStorageError(key, str(exc)) from exc

    def remove_item(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as exc:
            raise StateStorageError(key, str(exc)) from exc

    def close(self) -> None:
        self._client.close()

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"
