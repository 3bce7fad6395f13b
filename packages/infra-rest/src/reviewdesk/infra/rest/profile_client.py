"""Profile lookups against the ``profiles`` table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from reviewdesk.foundation.domain.exceptions import RemoteServiceError
from reviewdesk.foundation.domain.identity_value_objects import Profile

if TYPE_CHECKING:
    from reviewdesk.foundation.domain.identity_value_objects import ProfileUpdate
    from reviewdesk.infra.rest.client import RestClient

_TABLE = "profiles"


class ProfileServiceClient:
    """Implements :class:`ProfileServicePort` over the REST helper."""

    def __init__(self, rest: RestClient) -> None:
        self._rest = rest

    async def get_profile(self, user_id: str) -> Profile:
        """Fetch the profile keyed by ``user_id``.

        Raises:
            NotFoundError: If the user has no profile row.
            RemoteServiceError: If the row does not match the profile schema.
        """
        row = await self._rest.select_one(_TABLE, {"id": user_id}, resource_type="Profile")
        try:
            return Profile.model_validate(row)
        except PydanticValidationError as exc:
            raise RemoteServiceError(_TABLE, f"Invalid profile record for {user_id}") from exc

    async def update_profile(self, user_id: str, updates: ProfileUpdate) -> None:
        payload = updates.to_payload()
        if not payload:
            return
        await self._rest.update(_TABLE, {"id": user_id}, payload, resource_type="Profile")
