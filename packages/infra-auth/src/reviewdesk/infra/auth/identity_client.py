"""Async HTTP client for the hosted identity service.

Implements :class:`IdentityServicePort` against the backend's GoTrue-style
auth endpoints (``/auth/v1/...``). The client keeps the current session in
memory; REST clients read the bearer token from it.

Design decisions:
- One shared httpx.AsyncClient per identity client, created lazily or
  injected by the caller. Call :meth:`aclose` to release an owned client.
- Credential rejections (400/401/403/422) raise ``AuthenticationError``
  carrying the provider's message, which the session store shows verbatim.
  Other non-2xx answers raise ``RemoteServiceError``. Network failures
  propagate as ``httpx.HTTPError``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from reviewdesk.foundation.domain.exceptions import AuthenticationError, RemoteServiceError
from reviewdesk.foundation.domain.identity_value_objects import Session, User
from reviewdesk.foundation.domain.ports.identity_service import AuthResult

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0
_AUTH_REJECTION_STATUSES = frozenset({400, 401, 403, 422})
# Refresh this many seconds before the recorded expiry.
_EXPIRY_LEEWAY = 10


class IdentityServiceClient:
    """Async client for sign-in, sign-out, sign-up and session checks.

    Args:
        base_url: Backend base URL (e.g., "https://abc.example.co").
        anon_key: Public API key sent as the ``apikey`` header.
        timeout: HTTP request timeout in seconds.
        client: Optional shared httpx.AsyncClient instance.
        clock: Epoch-seconds clock, injectable for tests.
    """

    service_name = "identity"

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = _DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._timeout = timeout
        self._external_client = client is not None
        self._client: httpx.AsyncClient | None = client
        self._clock = clock
        self._session: Session | None = None

    # -- Session access -----------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    def restore_session(self, session: Session) -> None:
        """Seed the client with a session persisted by a previous run."""
        self._session = session

    def auth_headers(self) -> dict[str, str]:
        """Headers for backend calls: apikey plus the session bearer token.

        Falls back to the anon key as bearer when signed out, which is what
        the backend expects for anonymous access.
        """
        token = self._session.access_token if self._session else self._anon_key
        return {"apikey": self._anon_key, "Authorization": f"Bearer {token}"}

    # -- IdentityServicePort ------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Exchange email and password for a session.

        Raises:
            AuthenticationError: If the credentials are rejected.
            RemoteServiceError: On other non-2xx responses.
        """
        body = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            anonymous=True,
        )
        session = self._parse_session(body)
        self._session = session
        return AuthResult(user=session.user, session=session)

    async def sign_out(self) -> None:
        """Invalidate the session remotely; the local session is always cleared.

        Raises:
            RemoteServiceError: If the service rejects the logout. The local
                session is already gone at that point.
        """
        session = self._session
        self._session = None
        if session is None:
            return
        await self._request(
            "POST",
            "/logout",
            headers={"Authorization": f"Bearer {session.access_token}"},
        )

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthResult:
        """Create an account. The current session is left untouched."""
        body = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": {"full_name": full_name}},
            anonymous=True,
        )
        if "access_token" in body:
            session = self._parse_session(body)
            return AuthResult(user=session.user, session=session)
        return AuthResult(user=self._parse_user(body), session=None)

    async def get_session(self) -> Session | None:
        """Return the live session, refreshing it once it has expired.

        Returns None when there is no session, or when the refresh token was
        rejected (the stale session is dropped).
        """
        if self._session is None:
            return None
        if self._session.seconds_until_expiry(self._clock()) > _EXPIRY_LEEWAY:
            return self._session
        try:
            result = await self.refresh_session()
        except AuthenticationError:
            logger.info("identity_session_expired")
            self._session = None
            return None
        return result.session

    async def refresh_session(self) -> AuthResult:
        """Exchange the refresh token for a new session.

        Raises:
            AuthenticationError: If there is no session or the refresh token
                is rejected.
        """
        if self._session is None or not self._session.refresh_token:
            raise AuthenticationError(
                "No session to refresh",
                auth_error="invalid_grant",
                error_code="MISSING_REFRESH_TOKEN",
            )
        body = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
            anonymous=True,
        )
        session = self._parse_session(body)
        self._session = session
        return AuthResult(user=session.user, session=session)

    async def get_user(self) -> User | None:
        """Return the principal behind the current session, if any."""
        if self._session is None:
            return None
        body = await self._request("GET", "/user")
        return self._parse_user(body)

    async def send_verification_email(self, email: str) -> None:
        await self._request(
            "POST",
            "/resend",
            json={"type": "signup", "email": email},
            anonymous=True,
        )

    async def verify_email(self, token: str) -> AuthResult:
        """Confirm an email address; the service answers with a session."""
        return await self._verify(token, "signup")

    async def accept_invitation(self, token: str, password: str, full_name: str) -> AuthResult:
        """Redeem an invitation token, then set the invited user's password and name."""
        result = await self._verify(token, "invite")
        body = await self._request(
            "PUT",
            "/user",
            json={"password": password, "data": {"full_name": full_name}},
        )
        return AuthResult(user=self._parse_user(body), session=result.session)

    # -- Lifecycle ----------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        """Return the shared or lazily-created httpx.AsyncClient."""
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Close the internal httpx.AsyncClient if we own it.

        No-op if the client was provided externally or not yet created.
        """
        if self._client is not None and not self._external_client:
            await self._client.aclose()
            self._client = None

    # -- Internals ----------------------------------------------------------

    async def _verify(self, token: str, verify_type: str) -> AuthResult:
        body = await self._request(
            "POST",
            "/verify",
            json={"type": verify_type, "token_hash": token},
            anonymous=True,
        )
        session = self._parse_session(body)
        self._session = session
        return AuthResult(user=session.user, session=session)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        anonymous: bool = False,
    ) -> dict[str, Any]:
        """Send a request to ``/auth/v1{path}`` and return the JSON body.

        Raises:
            AuthenticationError: On credential rejections.
            RemoteServiceError: On other non-2xx responses or non-JSON bodies.
        """
        request_headers = (
            {"apikey": self._anon_key, "Authorization": f"Bearer {self._anon_key}"}
            if anonymous
            else self.auth_headers()
        )
        if headers:
            request_headers.update(headers)

        client = self._get_client()
        response = await client.request(
            method,
            f"{self._base_url}/auth/v1{path}",
            params=params,
            json=json,
            headers=request_headers,
            timeout=self._timeout,
        )
        if response.is_success:
            if response.status_code == 204 or not response.content:
                return {}
            try:
                body: dict[str, Any] = response.json()
            except ValueError as exc:
                raise RemoteServiceError(
                    self.service_name,
                    "Identity service returned an unreadable response",
                    status_code=response.status_code,
                ) from exc
            return body
        self._raise_for_error(response)
        return {}  # pragma: no cover

    def _raise_for_error(self, response: httpx.Response) -> None:
        body: dict[str, Any] = {}
        if response.headers.get("content-type", "").startswith("application/json"):
            try:
                body = response.json()
            except ValueError:
                body = {}
        message = str(
            body.get("error_description")
            or body.get("msg")
            or body.get("message")
            or f"Identity service error ({response.status_code})"
        )
        if response.status_code in _AUTH_REJECTION_STATUSES:
            raise AuthenticationError(
                message,
                auth_error=str(body.get("error") or body.get("error_code") or "invalid_request"),
                error_code="IDENTITY_REJECTED",
                context={"status": response.status_code},
            )
        logger.error("identity_request_failed", extra={"status": response.status_code})
        raise RemoteServiceError(self.service_name, message, status_code=response.status_code)

    def _parse_session(self, body: dict[str, Any]) -> Session:
        data = dict(body)
        if "expires_at" not in data:
            expires_in = int(data.get("expires_in") or 3600)
            data["expires_at"] = int(self._clock()) + expires_in
        try:
            return Session.model_validate(data)
        except PydanticValidationError as exc:
            raise RemoteServiceError(
                self.service_name, "Identity service returned an invalid session"
            ) from exc

    def _parse_user(self, body: dict[str, Any]) -> User:
        data = body.get("user", body)
        try:
            return User.model_validate(data)
        except PydanticValidationError as exc:
            raise RemoteServiceError(
                self.service_name, "Identity service returned an invalid user"
            ) from exc
