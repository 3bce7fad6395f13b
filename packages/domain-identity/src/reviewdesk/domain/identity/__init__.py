"""Reviewdesk Domain Identity -- session store for the current principal."""

from reviewdesk.domain.identity.session_store import (
    SESSION_STATE_VERSION,
    SESSION_STORAGE_KEY,
    PersistedSessionState,
    SessionStore,
    SessionStoreSettings,
)

__all__ = [
    "SESSION_STATE_VERSION",
    "SESSION_STORAGE_KEY",
    "PersistedSessionState",
    "SessionStore",
    "SessionStoreSettings",
]
