"""Reviewdesk Infra Persistence -- durable key-value storage backends."""

from reviewdesk.infra.persistence.redis_settings import RedisSettings
from reviewdesk.infra.persistence.state_storage import (
    FileStateStorage,
    InMemoryStateStorage,
    RedisStateStorage,
)

__all__ = [
    "FileStateStorage",
    "InMemoryStateStorage",
    "RedisSettings",
    "RedisStateStorage",
]
