"""Versioned persistence of partial store state.

Each store persists a subset of its state as an envelope::

    {"version": 1, "state": {...}}

under its own key in a :class:`StateStoragePort`. On load the version is
matched against the current one: equal versions are validated, older
versions are migrated step by step when a migration is registered, and
anything else (newer versions, gaps in the migration chain, malformed JSON,
payloads that fail validation) is discarded so the store starts from its
defaults and re-fetches.

Usage:
    persister = StatePersister(storage, "tenant-storage", PersistedTenantState)
    state = persister.load()  # PersistedTenantState | None
    persister.save(state)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from reviewdesk.foundation.domain.exceptions import StateStorageError

if TYPE_CHECKING:
    from reviewdesk.foundation.domain.ports import StateStoragePort

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT", bound=BaseModel)

Migration = Callable[[dict[str, Any]], dict[str, Any]]


class PersistedEnvelope(BaseModel):
    """Tagged container written to storage.

    Attributes:
        version: Schema version of ``state``.
        state: JSON-compatible payload of the persisted fields.
    """

    version: int
    state: dict[str, Any]


class StatePersister(Generic[StateT]):
    """Load and save one store's persisted subset under one storage key.

    Args:
        storage: Durable key-value area shared by all stores.
        key: Storage key owned by this store.
        model: Pydantic model describing the current payload schema.
        version: Current schema version.
        migrations: Map of ``from_version`` to a callable turning a payload of
            that version into a payload of ``from_version + 1``.
    """

    def __init__(
        self,
        storage: StateStoragePort,
        key: str,
        model: type[StateT],
        version: int = 1,
        migrations: Mapping[int, Migration] | None = None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._model = model
        self._version = version
        self._migrations = dict(migrations or {})

    @property
    def key(self) -> str:
        return self._key

    @property
    def version(self) -> int:
        return self._version

    def load(self) -> StateT | None:
        """Read, migrate and validate the persisted payload.

        Returns:
            The validated payload, or None when nothing usable is stored.
        """
        try:
            raw = self._storage.get_item(self._key)
        except StateStorageError:
            logger.exception("persisted_state_read_failed", extra={"key": self._key})
            return None
        if raw is None:
            return None

        try:
            envelope = PersistedEnvelope.model_validate_json(raw)
        except ValidationError:
            return self._discard("malformed_envelope")

        state = envelope.state
        version = envelope.version
        while version < self._version:
            migrate = self._migrations.get(version)
            if migrate is None:
                return self._discard("no_migration", found_version=version)
            state = migrate(state)
            version += 1

        if version != self._version:
            return self._discard("unknown_version", found_version=version)

        try:
            return self._model.model_validate(state)
        except ValidationError:
            return self._discard("invalid_state", found_version=version)

    def save(self, state: StateT) -> None:
        """Write the payload tagged with the current version.

        Storage failures are logged; the in-memory store stays authoritative
        and the next state change writes again.
        """
        envelope = PersistedEnvelope(version=self._version, state=state.model_dump(mode="json"))
        try:
            self._storage.set_item(self._key, envelope.model_dump_json())
        except StateStorageError:
            logger.exception("persisted_state_write_failed", extra={"key": self._key})

    def clear(self) -> None:
        try:
            self._storage.remove_item(self._key)
        except StateStorageError:
            logger.exception("persisted_state_clear_failed", extra={"key": self._key})

    def _discard(self, reason: str, found_version: int | None = None) -> None:
        logger.warning(
            "persisted_state_discarded",
            extra={
                "key": self._key,
                "reason": reason,
                "found_version": found_version,
                "expected_version": self._version,
            },
        )
        self.clear()
        return None
