"""Reviewdesk Foundation Domain -- pure Python domain primitives.

This package provides the building blocks shared by the session and tenant
stores: exceptions, the role hierarchy, records mirrored from the remote
services, result and snapshot types, and port interfaces.
"""

from reviewdesk.foundation.domain.exceptions import (
    TENANT_NOT_ASSIGNED_MESSAGE,
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    RemoteServiceError,
    StateStorageError,
    TenantNotAssignedError,
    ValidationError,
)
from reviewdesk.foundation.domain.identity_value_objects import (
    Profile,
    ProfileUpdate,
    Session,
    User,
)
from reviewdesk.foundation.domain.ports import (
    AuthResult,
    IdentityServicePort,
    ProfileServicePort,
    StateStoragePort,
    TenantServicePort,
)
from reviewdesk.foundation.domain.results import ActionResult, Freshness, Snapshot
from reviewdesk.foundation.domain.roles import (
    Role,
    is_admin,
    is_super_admin,
    is_tenant_admin,
    role_satisfies,
)
from reviewdesk.foundation.domain.tenant_value_objects import (
    PlanType,
    Tenant,
    TenantCreate,
    TenantFeatures,
    TenantLimits,
    TenantMetrics,
    TenantSettings,
    TenantStatus,
    TenantUpdate,
)

__all__ = [
    "TENANT_NOT_ASSIGNED_MESSAGE",
    "ActionResult",
    "AuthResult",
    "AuthenticationError",
    "AuthorizationError",
    "DomainError",
    "Freshness",
    "IdentityServicePort",
    "NotFoundError",
    "PlanType",
    "Profile",
    "ProfileServicePort",
    "ProfileUpdate",
    "RemoteServiceError",
    "Role",
    "Session",
    "Snapshot",
    "StateStorageError",
    "StateStoragePort",
    "Tenant",
    "TenantCreate",
    "TenantFeatures",
    "TenantLimits",
    "TenantMetrics",
    "TenantNotAssignedError",
    "TenantServicePort",
    "TenantSettings",
    "TenantStatus",
    "TenantUpdate",
    "User",
    "ValidationError",
    "is_admin",
    "is_super_admin",
    "is_tenant_admin",
    "role_satisfies",
]
