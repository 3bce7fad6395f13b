"""Domain port interfaces for hexagonal architecture.

Ports define the remote services and the durable key-value area the stores
depend on. Implementations (adapters) live in infrastructure packages.
"""

from reviewdesk.foundation.domain.ports.identity_service import (
    AuthResult,
    IdentityServicePort,
)
from reviewdesk.foundation.domain.ports.profile_service import ProfileServicePort
from reviewdesk.foundation.domain.ports.state_storage import StateStoragePort
from reviewdesk.foundation.domain.ports.tenant_service import TenantServicePort

__all__ = [
    "AuthResult",
    "IdentityServicePort",
    "ProfileServicePort",
    "StateStoragePort",
    "TenantServicePort",
]
