"""Records mirrored from the remote identity and profile services.

``User`` and ``Session`` come from the identity service; ``Profile`` comes
from the profile table keyed by user id. The client never creates these on
its own; it only mirrors what the remote side returns.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from reviewdesk.foundation.domain.roles import Role


class User(BaseModel):
    """Authenticated principal as known by the identity service.

    Attributes:
        id: Unique principal identifier.
        email: Sign-in email.
        email_confirmed_at: Confirmation timestamp; presence means verified.
        user_metadata: Free-form attributes captured at sign-up (full_name).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    email: str | None = None
    email_confirmed_at: datetime | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_email_verified(self) -> bool:
        return self.email_confirmed_at is not None


class Session(BaseModel):
    """Credential bundle with an absolute expiry.

    Attributes:
        access_token: Bearer token for remote calls.
        refresh_token: Token exchanged for a new session.
        expires_at: Expiry as epoch seconds.
        token_type: Always "bearer" for the hosted backend.
        user: Principal the session was issued to.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str
    refresh_token: str = ""
    expires_at: int
    token_type: str = "bearer"
    user: User | None = None

    def seconds_until_expiry(self, now: float) -> float:
        """Seconds left before expiry, negative once expired."""
        return self.expires_at - now

    def is_expired(self, now: float) -> bool:
        return self.seconds_until_expiry(now) <= 0


class Profile(BaseModel):
    """Application-level record linked to a principal.

    Attributes:
        id: Same value as the owning ``User.id``.
        email: Contact email.
        full_name: Display name.
        role: Position in the role hierarchy.
        tenant_id: Tenant the user belongs to; ``None`` for unassigned users
            and for platform admins.
        avatar_url: Optional avatar location.
        created_at: Remote creation timestamp.
        updated_at: Remote update timestamp.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    email: str
    full_name: str | None = None
    role: Role = Role.USER
    tenant_id: str | None = None
    avatar_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Partial profile update. Only explicitly set fields are sent."""

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = None
    avatar_url: str | None = None
    email: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)
