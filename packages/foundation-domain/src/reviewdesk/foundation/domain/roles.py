"""Role hierarchy for access checks.

Closed set of profile roles ordered super_admin > tenant_admin > user.
All access checks go through :func:`role_satisfies` instead of comparing
role strings at call sites.
"""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType


class Role(StrEnum):
    """Profile role as stored by the remote profile service."""

    SUPER_ADMIN = "super_admin"
    TENANT_ADMIN = "tenant_admin"
    USER = "user"


_ROLE_RANK: MappingProxyType[Role, int] = MappingProxyType(
    {
        Role.USER: 0,
        Role.TENANT_ADMIN: 1,
        Role.SUPER_ADMIN: 2,
    }
)


def role_satisfies(have: Role | str | None, need: Role | str) -> bool:
    """Check whether a held role meets a required role.

    Args:
        have: Role held by the principal. ``None`` means no profile is
            loaded and never satisfies anything.
        need: Minimum role required.

    Returns:
        True if ``have`` ranks at or above ``need``.

    Raises:
        ValueError: If either value is not a known role.

    Example:
        >>> role_satisfies(Role.SUPER_ADMIN, Role.TENANT_ADMIN)
        True
        >>> role_satisfies("user", "tenant_admin")
        False
    """
    if have is None:
        return False
    return _ROLE_RANK[Role(have)] >= _ROLE_RANK[Role(need)]


def is_admin(role: Role | str | None) -> bool:
    """True for tenant admins and super admins."""
    return role_satisfies(role, Role.TENANT_ADMIN)


def is_super_admin(role: Role | str | None) -> bool:
    return role is not None and Role(role) is Role.SUPER_ADMIN


def is_tenant_admin(role: Role | str | None) -> bool:
    return role is not None and Role(role) is Role.TENANT_ADMIN
