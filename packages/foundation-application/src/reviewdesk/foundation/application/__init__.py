"""Reviewdesk Foundation Application -- store base and versioned persistence."""

from reviewdesk.foundation.application.persistence import (
    Migration,
    PersistedEnvelope,
    StatePersister,
)
from reviewdesk.foundation.application.store import (
    REMOTE_ERRORS,
    BaseStore,
    Listener,
    describe_error,
)

__all__ = [
    "REMOTE_ERRORS",
    "BaseStore",
    "Listener",
    "Migration",
    "PersistedEnvelope",
    "StatePersister",
    "describe_error",
]
