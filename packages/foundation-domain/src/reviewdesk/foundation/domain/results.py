"""Result and snapshot types returned by store actions.

``ActionResult`` is the ``{success, error?}`` shape every store action
returns instead of raising. ``Snapshot`` tags a cached remote value as
fresh, stale (a refresh failed and the previous value was kept) or absent.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ActionResult(Generic[T]):
    """Outcome of a store action.

    Attributes:
        success: Whether the action completed.
        error: Human-readable failure reason when ``success`` is False.
        data: Optional payload (e.g., the created tenant).
    """

    success: bool
    error: str | None = None
    data: T | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> ActionResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ActionResult[T]:
        return cls(success=False, error=error)


class Freshness(StrEnum):
    """How much a cached remote value can be trusted."""

    FRESH = "fresh"
    STALE = "stale"
    ABSENT = "absent"


@dataclass(frozen=True, slots=True)
class Snapshot(Generic[T]):
    """A cached remote value together with its freshness.

    Attributes:
        value: Last value received, or None when absent.
        freshness: FRESH after a successful fetch, STALE when a later
            refresh failed and ``value`` was kept, ABSENT when there is
            nothing cached.
        fetched_at: Epoch seconds of the fetch that produced ``value``.
    """

    value: T | None = None
    freshness: Freshness = Freshness.ABSENT
    fetched_at: float | None = None

    @classmethod
    def fresh(cls, value: T, fetched_at: float) -> Snapshot[T]:
        return cls(value=value, freshness=Freshness.FRESH, fetched_at=fetched_at)

    @classmethod
    def absent(cls) -> Snapshot[T]:
        return cls()

    @property
    def is_fresh(self) -> bool:
        return self.freshness is Freshness.FRESH

    @property
    def is_stale(self) -> bool:
        return self.freshness is Freshness.STALE

    def mark_stale(self) -> Snapshot[T]:
        """Keep the value but flag it as no longer confirmed.

        An absent snapshot stays absent: there is nothing to be stale.
        """
        if self.freshness is Freshness.ABSENT:
            return self
        return replace(self, freshness=Freshness.STALE)
