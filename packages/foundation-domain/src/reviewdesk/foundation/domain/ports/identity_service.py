"""Port interface for the remote identity service.

This module defines the IdentityServicePort protocol the session store uses
for sign-in, sign-out, sign-up and session checks, without coupling it to a
particular HTTP client or provider.

Failures are raised, not returned: rejected credentials raise
``AuthenticationError``; transport and upstream failures raise
``RemoteServiceError`` or ``httpx.HTTPError``.

Example:
    >>> from reviewdesk.foundation.domain.ports import IdentityServicePort
    >>> async def current_email(identity: IdentityServicePort) -> str | None:
    ...     user = await identity.get_user()
    ...     return user.email if user else None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reviewdesk.foundation.domain.identity_value_objects import Session, User


@dataclass(frozen=True, slots=True)
class AuthResult:
    """User and session returned by a credential exchange.

    Either member may be None: sign-up without email confirmation returns a
    user and no session.
    """

    user: User | None
    session: Session | None


@runtime_checkable
class IdentityServicePort(Protocol):
    """Port for the hosted identity (auth) service.

    The protocol is runtime_checkable to enable isinstance() verification
    in tests and dependency injection validation.
    """

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Exchange email and password for a session.

        Raises:
            AuthenticationError: If the credentials are rejected.
        """
        ...

    async def sign_out(self) -> None:
        """Invalidate the current session remotely."""
        ...

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthResult:
        """Create a remote account. Does not sign the caller in."""
        ...

    def restore_session(self, session: Session) -> None:
        """Seed the client with a session persisted by a previous run."""
        ...

    async def get_session(self) -> Session | None:
        """Return the live session, or None when there is none."""
        ...

    async def refresh_session(self) -> AuthResult:
        """Exchange the refresh token for a new session."""
        ...

    async def get_user(self) -> User | None:
        """Return the principal behind the current session, if any."""
        ...

    async def send_verification_email(self, email: str) -> None:
        """Ask the service to (re)send the sign-up confirmation email."""
        ...

    async def verify_email(self, token: str) -> AuthResult:
        """Confirm an email address with the token from the confirmation email."""
        ...

    async def accept_invitation(self, token: str, password: str, full_name: str) -> AuthResult:
        """Redeem an invitation token and set the invited user's credentials."""
        ...
