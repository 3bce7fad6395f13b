"""Reviewdesk Infra REST -- profile and tenant clients for the hosted data API."""

from reviewdesk.infra.rest.client import RestClient
from reviewdesk.infra.rest.profile_client import ProfileServiceClient
from reviewdesk.infra.rest.tenant_client import TenantServiceClient

__all__ = [
    "ProfileServiceClient",
    "RestClient",
    "TenantServiceClient",
]
