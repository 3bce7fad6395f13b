"""Observable, optionally persisted state container.

Base class for the session and tenant stores. State lives in plain
attributes that consumers read directly. Every change goes through
:meth:`BaseStore._set`, which applies it synchronously, writes the
persisted subset when one of its fields changed, and then notifies
subscribers.

Stores run on one event loop. Between two ``await`` points a method's state
changes are applied in order; calls to different methods may interleave.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from reviewdesk.foundation.domain.exceptions import DomainError

if TYPE_CHECKING:
    from pydantic import BaseModel

    from reviewdesk.foundation.application.persistence import StatePersister

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]

# Failures a store action catches at its public boundary. Anything else is a
# programming error and propagates.
REMOTE_ERRORS: tuple[type[Exception], ...] = (DomainError, httpx.HTTPError)


def describe_error(exc: BaseException) -> str:
    """Human-readable message for a caught remote failure."""
    return str(exc) or type(exc).__name__


class BaseStore:
    """Shared loading/error state, subscriptions and persistence hook.

    Subclasses list the attribute names that belong to their persisted
    subset in ``persisted_fields`` and build the payload in
    :meth:`_persisted_state`.

    Attributes:
        loading: True until the first operation settles, and while an
            operation that reports progress is in flight.
        error: Last remote-call failure, as a human-readable string.
    """

    persisted_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, persister: StatePersister[Any] | None = None) -> None:
        self.loading: bool = True
        self.error: str | None = None
        self._persister = persister
        self._listeners: list[Listener] = []

    # -- Subscriptions ------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` to be called with the store after each change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- Base actions -------------------------------------------------------

    def set_loading(self, loading: bool) -> None:
        self._set(loading=loading)

    def set_error(self, error: str | None) -> None:
        self._set(error=error)

    def clear_error(self) -> None:
        self._set(error=None)

    # -- Internals ----------------------------------------------------------

    def _set(self, **changes: Any) -> None:
        """Apply attribute changes, persist if needed, notify subscribers.

        Raises:
            AttributeError: If a change names an attribute the store lacks.
        """
        for name, value in changes.items():
            if not hasattr(self, name):
                msg = f"{type(self).__name__} has no state field '{name}'"
                raise AttributeError(msg)
            setattr(self, name, value)

        if self._persister is not None and not self.persisted_fields.isdisjoint(changes):
            self._persister.save(self._persisted_state())

        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("store_listener_failed", extra={"store": type(self).__name__})

    def _persisted_state(self) -> BaseModel:
        raise NotImplementedError

    def _clear_persisted(self) -> None:
        if self._persister is not None:
            self._persister.clear()
