"""Reviewdesk Infra Auth -- identity service client and backend settings.

Provides the httpx client for the hosted identity service and the
pydantic-settings classes describing the backend connection and session
bookkeeping.
"""

from reviewdesk.infra.auth.identity_client import IdentityServiceClient
from reviewdesk.infra.auth.settings import (
    AuthSettings,
    BackendSettings,
    get_auth_settings,
    get_backend_settings,
)

__all__ = [
    "AuthSettings",
    "BackendSettings",
    "IdentityServiceClient",
    "get_auth_settings",
    "get_backend_settings",
]
