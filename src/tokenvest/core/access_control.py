"""
Role-based access control for vesting contracts.

Contracts receive an ``AccessControl`` collaborator and ask it
``has_role(capability, caller)`` instead of comparing addresses inline.
Role administration is itself gated by the ``ADMIN`` role, and every change
is kept in an audit trail.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Set, Type

from .primitives import normalize_address, is_zero_address
from .exceptions import InvalidParametersError, UnauthorizedError

logger = logging.getLogger(__name__)


class Role(Enum):
    """Standard capabilities used by the vesting contracts."""
    ADMIN = "admin"
    GRANT_ADMIN = "grant_admin"
    PAUSER = "pauser"
    MINTER = "minter"


def _role_name(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else str(role)


@dataclass
class AccessControl:
    """
    Role registry with admin-gated grant/revoke.

    Usage:
        acl = AccessControl(admin_address="0xadmin")
        acl.grant_role("0xadmin", Role.GRANT_ADMIN, "0xmanager")
        acl.require_role(Role.GRANT_ADMIN, caller)
    """

    # Admin address (starts with the admin role)
    admin_address: str = ""

    # Role assignments: role -> set of addresses
    roles: Dict[str, Set[str]] = field(default_factory=dict)

    # Audit log
    role_changes: list = field(default_factory=list)

    def __post_init__(self) -> None:
        for role in Role:
            self.roles.setdefault(role.value, set())

        if self.admin_address:
            self.admin_address = normalize_address(self.admin_address)
            self.roles[Role.ADMIN.value].add(self.admin_address)

    def has_role(self, role: Role | str, address: str) -> bool:
        """Check if an address holds a role."""
        return normalize_address(address) in self.roles.get(_role_name(role), set())

    def require_role(
        self,
        role: Role | str,
        caller: str,
        error_cls: Type[UnauthorizedError] = UnauthorizedError,
        code: str | None = None,
    ) -> None:
        """
        Raise unless ``caller`` holds ``role``.

        Raises:
            UnauthorizedError: (or ``error_cls``) if the caller lacks the role
        """
        if not self.has_role(role, caller):
            logger.warning(
                "Access denied: role not assigned",
                extra={
                    "event": "rbac.role_not_assigned",
                    "address": normalize_address(caller)[:10],
                    "required_role": _role_name(role),
                }
            )
            raise error_cls(
                f"caller {normalize_address(caller)[:10]} does not have role '{_role_name(role)}'",
                code=code,
            )

    def grant_role(self, caller: str, role: Role | str, address: str) -> bool:
        """
        Grant a role to an address.

        Raises:
            UnauthorizedError: If caller is not admin
            InvalidParametersError: If address is the zero address
        """
        self.require_role(Role.ADMIN, caller)
        if is_zero_address(address):
            raise InvalidParametersError("cannot grant a role to the zero address")

        address_norm = normalize_address(address)
        self.roles.setdefault(_role_name(role), set()).add(address_norm)
        self._audit("grant", role, address_norm, caller)
        return True

    def revoke_role(self, caller: str, role: Role | str, address: str) -> bool:
        """
        Revoke a role from an address.

        Raises:
            UnauthorizedError: If caller is not admin
        """
        self.require_role(Role.ADMIN, caller)
        address_norm = normalize_address(address)
        self.roles.get(_role_name(role), set()).discard(address_norm)
        self._audit("revoke", role, address_norm, caller)
        return True

    def renounce_role(self, caller: str, role: Role | str) -> bool:
        """Drop one of the caller's own roles."""
        address_norm = normalize_address(caller)
        self.roles.get(_role_name(role), set()).discard(address_norm)
        self._audit("renounce", role, address_norm, caller)
        return True

    def get_role_members(self, role: Role | str) -> Set[str]:
        """Get all addresses with a given role."""
        return self.roles.get(_role_name(role), set()).copy()

    def get_user_roles(self, address: str) -> Set[str]:
        """Get all roles assigned to an address."""
        address_norm = normalize_address(address)
        return {
            role
            for role, members in self.roles.items()
            if address_norm in members
        }

    def _audit(self, action: str, role: Role | str, address: str, caller: str) -> None:
        self.role_changes.append({
            "action": action,
            "role": _role_name(role),
            "address": address,
            "admin": normalize_address(caller),
            "timestamp": time.time(),
        })
        logger.info(
            "Role %s", action,
            extra={
                "event": f"rbac.role_{action}",
                "role": _role_name(role),
                "address": address[:10],
            }
        )
