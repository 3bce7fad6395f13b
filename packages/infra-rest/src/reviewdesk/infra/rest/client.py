"""Async helper for the backend's PostgREST-style data API.

Every request carries the ``apikey`` header and the bearer token of the
identity client's current session, so row-level security on the backend
sees the signed-in user.

Error mapping:
    401                      -> AuthenticationError (expired or missing token)
    403 / code 42501         -> AuthorizationError (row-level security denial)
    406 / code PGRST116      -> NotFoundError (single-row request matched nothing)
    400 / 409 / 422          -> ValidationError (constraint or payload rejected)
    anything else non-2xx    -> RemoteServiceError
Network failures propagate as ``httpx.HTTPError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from reviewdesk.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    RemoteServiceError,
    ValidationError,
)

if TYPE_CHECKING:
    from reviewdesk.infra.auth.identity_client import IdentityServiceClient

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0
_SINGLE_OBJECT = "application/vnd.pgrst.object+json"
_NO_ROWS_CODE = "PGRST116"
_INSUFFICIENT_PRIVILEGE_CODE = "42501"
_REJECTED_PAYLOAD_STATUSES = frozenset({400, 409, 422})


class RestClient:
    """Thin async wrapper over table and RPC endpoints.

    Args:
        identity: Identity client providing the auth headers.
        base_url: Backend base URL.
        service_name: Name used in errors and logs ("profiles", "tenants").
        timeout: HTTP request timeout in seconds.
        client: Optional shared httpx.AsyncClient instance.
    """

    def __init__(
        self,
        identity: IdentityServiceClient,
        base_url: str,
        service_name: str,
        timeout: float = _DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._identity = identity
        self._base_url = base_url.rstrip("/")
        self._service_name = service_name
        self._timeout = timeout
        self._external_client = client is not None
        self._client: httpx.AsyncClient | None = client

    @property
    def identity(self) -> IdentityServiceClient:
        return self._identity

    async def select(
        self,
        table: str,
        filters: dict[str, str] | None = None,
        columns: str = "*",
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        """Return all rows of ``table`` matching equality ``filters``."""
        params = {"select": columns, **_eq_filters(filters)}
        if order:
            params["order"] = order
        rows = await self._request("GET", f"/rest/v1/{table}", params=params)
        return list(rows or [])

    async def select_one(
        self,
        table: str,
        filters: dict[str, str],
        columns: str = "*",
        resource_type: str | None = None,
    ) -> dict[str, Any]:
        """Return exactly one row.

        Raises:
            NotFoundError: If no row matches.
        """
        params = {"select": columns, **_eq_filters(filters)}
        try:
            row = await self._request(
                "GET",
                f"/rest/v1/{table}",
                params=params,
                headers={"Accept": _SINGLE_OBJECT},
            )
        except NotFoundError:
            raise NotFoundError(
                resource_type or table, ",".join(filters.values()), table=table
            ) from None
        return dict(row)

    async def insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the stored representation."""
        row = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=payload,
            headers={"Prefer": "return=representation", "Accept": _SINGLE_OBJECT},
        )
        return dict(row)

    async def update(
        self,
        table: str,
        filters: dict[str, str],
        payload: dict[str, Any],
        resource_type: str | None = None,
    ) -> dict[str, Any]:
        """Patch the single row matching ``filters`` and return it.

        Raises:
            NotFoundError: If no row matches.
        """
        try:
            row = await self._request(
                "PATCH",
                f"/rest/v1/{table}",
                params=_eq_filters(filters),
                json=payload,
                headers={"Prefer": "return=representation", "Accept": _SINGLE_OBJECT},
            )
        except NotFoundError:
            raise NotFoundError(
                resource_type or table, ",".join(filters.values()), table=table
            ) from None
        return dict(row)

    async def delete(self, table: str, filters: dict[str, str]) -> None:
        await self._request("DELETE", f"/rest/v1/{table}", params=_eq_filters(filters))

    async def rpc(self, function: str, args: dict[str, Any] | None = None) -> Any:
        """Call a remote procedure and return its decoded result."""
        return await self._request("POST", f"/rest/v1/rpc/{function}", json=args or {})

    def _get_client(self) -> httpx.AsyncClient:
        """Return the shared or lazily-created httpx.AsyncClient."""
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Close the internal httpx.AsyncClient if we own it."""
        if self._client is not None and not self._external_client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        request_headers = self._identity.auth_headers()
        if headers:
            request_headers.update(headers)

        client = self._get_client()
        response = await client.request(
            method,
            f"{self._base_url}{path}",
            params=params,
            json=json,
            headers=request_headers,
            timeout=self._timeout,
        )
        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise RemoteServiceError(
                    self._service_name,
                    f"Unreadable response from {self._service_name} service",
                    status_code=response.status_code,
                ) from exc
        self._raise_for_error(response, path)
        return None  # pragma: no cover

    def _raise_for_error(self, response: httpx.Response, path: str) -> None:
        body: dict[str, Any] = {}
        if response.headers.get("content-type", "").startswith("application/json"):
            try:
                parsed = response.json()
            except ValueError:
                parsed = {}
            if isinstance(parsed, dict):
                body = parsed
        code = str(body.get("code") or "")
        message = str(body.get("message") or f"{self._service_name} request failed")
        status = response.status_code

        if status == 406 or code == _NO_ROWS_CODE:
            raise NotFoundError(self._service_name, path)
        if status == 401:
            raise AuthenticationError(
                message,
                auth_error="invalid_token",
                error_code="TOKEN_REJECTED",
                context={"service": self._service_name},
            )
        if status == 403 or code == _INSUFFICIENT_PRIVILEGE_CODE:
            raise AuthorizationError(message, context={"service": self._service_name})
        if status in _REJECTED_PAYLOAD_STATUSES:
            raise ValidationError(
                path.removeprefix("/rest/v1/"), message, service=self._service_name, code=code
            )

        logger.error(
            "rest_request_failed",
            extra={"service": self._service_name, "status": status, "code": code},
        )
        raise RemoteServiceError(self._service_name, message, status_code=status)


def _eq_filters(filters: dict[str, str] | None) -> dict[str, str]:
    return {column: f"eq.{value}" for column, value in (filters or {}).items()}
