"""Errors raised by the remote clients and storage backends.

The stores never let these escape their public actions: each one is caught
at the boundary and its text becomes the store's ``error`` string. That is
why several subclasses render as their bare message; the UI shows exactly
what the identity provider or backend said.

Every error has a class-level ``error_code`` and a ``context`` dict that
log calls pass along as structured fields.

Example:
    >>> from reviewdesk.foundation.domain.exceptions import NotFoundError
    >>> str(NotFoundError("Tenant", "t1"))
    'Tenant not found: t1 (resource_type=Tenant, resource_id=t1)'
"""

from __future__ import annotations

from typing import Any, ClassVar

__all__ = [
    "TENANT_NOT_ASSIGNED_MESSAGE",
    "AuthenticationError",
    "AuthorizationError",
    "DomainError",
    "NotFoundError",
    "RemoteServiceError",
    "StateStorageError",
    "TenantNotAssignedError",
    "ValidationError",
]

TENANT_NOT_ASSIGNED_MESSAGE = "User not assigned to any tenant"


class DomainError(Exception):
    """Root of the hierarchy.

    ``str()`` appends the context as ``key=value`` pairs unless the class
    sets ``user_facing``, in which case only the message is rendered.
    """

    error_code: str = "DOMAIN_ERROR"
    user_facing: ClassVar[bool] = False

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        if self.user_facing or not self.context:
            return self.message
        pairs = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({pairs})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """A single-row lookup matched nothing (PostgREST 406 / PGRST116)."""

    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str, **extra: Any) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": str(resource_id), **extra},
        )


class ValidationError(DomainError):
    """A payload was refused, locally or by the backend (HTTP 400/409/422)."""

    error_code = "VALIDATION_ERROR"
    user_facing = True

    def __init__(self, field: str, reason: str, **extra: Any) -> None:
        self.field = field
        self.reason = reason
        super().__init__(
            f"Validation failed for '{field}': {reason}",
            {"field": field, "reason": reason, **extra},
        )


class AuthenticationError(DomainError):
    """The identity service refused credentials or a token.

    ``message`` should be the provider's own text ("Invalid login
    credentials"); ``auth_error`` keeps its machine code ("invalid_grant")
    and ``error_code`` narrows the cause for callers that branch on it.
    """

    error_code = "AUTHENTICATION_ERROR"
    user_facing = True

    def __init__(
        self,
        message: str,
        auth_error: str = "invalid_token",
        error_code: str = "AUTHENTICATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.auth_error = auth_error
        self.error_code = error_code


class AuthorizationError(DomainError):
    """Signed in, but the backend's row policies refused the operation."""

    error_code = "AUTHORIZATION_ERROR"
    user_facing = True


class RemoteServiceError(DomainError):
    """Unexpected answer from a remote service: 5xx or an unreadable body.

    Transport failures are not wrapped; they stay ``httpx.HTTPError``.
    """

    error_code = "REMOTE_SERVICE_ERROR"
    user_facing = True

    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(message, {"service": service, "status_code": status_code})


class TenantNotAssignedError(DomainError):
    # The tenant store treats this as "no tenants", not as a failure.
    error_code = "TENANT_NOT_ASSIGNED"
    user_facing = True

    def __init__(self, user_id: str | None = None) -> None:
        self.user_id = user_id
        super().__init__(TENANT_NOT_ASSIGNED_MESSAGE, {"user_id": user_id} if user_id else None)


class StateStorageError(DomainError):
    """A storage backend could not read, write or delete ``key``."""

    error_code = "STATE_STORAGE_ERROR"

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"State storage failed for '{key}': {reason}", {"key": key})
