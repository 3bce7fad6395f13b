"""Port interface for the durable key-value area holding persisted store state.

Synchronous on purpose: rehydrating a store happens while it is constructed,
before any remote call, and must not suspend.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class StateStoragePort(Protocol):
    """Port for a small string key-value store.

    Each store writes only its own key. There is no locking; the last writer
    of a key wins.

    Example:
        >>> class DictStorage:
        ...     def __init__(self) -> None:
        ...         self.items: dict[str, str] = {}
        ...     def get_item(self, key: str) -> str | None:
        ...         return self.items.get(key)
        ...     def set_item(self, key: str, value: str) -> None:
        ...         self.items[key] = value
        ...     def remove_item(self, key: str) -> None:
        ...         self.items.pop(key, None)
        >>> isinstance(DictStorage(), StateStoragePort)
        True
    """

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is missing."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def remove_item(self, key: str) -> None:
        """Delete ``key``. Missing keys are ignored."""
        ...
