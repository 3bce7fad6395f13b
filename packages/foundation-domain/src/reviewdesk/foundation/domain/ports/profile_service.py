"""Port interface for the remote profile lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reviewdesk.foundation.domain.identity_value_objects import Profile, ProfileUpdate


@runtime_checkable
class ProfileServicePort(Protocol):
    """Port for reading and updating the profile record of a principal."""

    async def get_profile(self, user_id: str) -> Profile:
        """Fetch the profile keyed by ``user_id``.

        Raises:
            NotFoundError: If no profile exists for the user.
        """
        ...

    async def update_profile(self, user_id: str, updates: ProfileUpdate) -> None:
        """Apply a partial update. Callers re-fetch to observe the result."""
        ...
