"""
Identity domain: callers, tenants, directory users and the classroom role model.

Why:
- Centralize the role lattice and the capability predicates so the resolver
  and every classroom use case agree on what a role may do.
- Roles are derived per request from tenant and classroom data; nothing here
  is persisted.

Notes:
- The model is not a strict hierarchy. SUPER_ADMIN and TENANT_ADMIN both imply
  full classroom capability, while TEACHER and STUDENT only order relative to
  each other inside one classroom. Precedence exists for reporting only;
  decisions go through the predicates below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


class EffectiveRole(str, Enum):
    NONE = "none"
    STUDENT = "student"
    TEACHER = "teacher"
    TENANT_ADMIN = "tenant_admin"
    SUPER_ADMIN = "super_admin"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]

    @property
    def is_admin(self) -> bool:
        return self in ADMIN_ROLES


_PRECEDENCE = {
    EffectiveRole.NONE: 0,
    EffectiveRole.STUDENT: 1,
    EffectiveRole.TEACHER: 2,
    EffectiveRole.TENANT_ADMIN: 3,
    EffectiveRole.SUPER_ADMIN: 4,
}

# Immutable to prevent accidental mutation.
ADMIN_ROLES = frozenset({EffectiveRole.SUPER_ADMIN, EffectiveRole.TENANT_ADMIN})
MANAGE_ROLES = ADMIN_ROLES | {EffectiveRole.TEACHER}
VIEW_ROLES = MANAGE_ROLES | {EffectiveRole.STUDENT}
CREATE_ROLES = ADMIN_ROLES


def highest(*roles: EffectiveRole) -> EffectiveRole:
    """Return the highest-precedence role among `roles` (NONE when empty)."""
    best = EffectiveRole.NONE
    for role in roles:
        if role.precedence > best.precedence:
            best = role
    return best


def can_manage_classroom(role: EffectiveRole) -> bool:
    return role in MANAGE_ROLES


def can_view_classroom(role: EffectiveRole) -> bool:
    return role in VIEW_ROLES


def can_create_classroom(role: EffectiveRole) -> bool:
    return role in CREATE_ROLES


def can_see_roster(role: EffectiveRole) -> bool:
    """Students see a classroom without its student roster."""
    return can_manage_classroom(role)


@dataclass(frozen=True)
class Caller:
    """Authenticated identity of the current request (from the access token)."""

    id: str
    is_super_admin: bool = False


@dataclass(frozen=True)
class Tenant:
    id: str
    admin_id: Optional[str] = None


@dataclass(frozen=True)
class DirectoryUser:
    id: str
    tenant_ids: FrozenSet[str] = field(default_factory=frozenset)
    is_super_admin: bool = False

    def is_member_of(self, tenant_id: str) -> bool:
        return tenant_id in self.tenant_ids


__all__ = [
    "ADMIN_ROLES",
    "CREATE_ROLES",
    "Caller",
    "DirectoryUser",
    "EffectiveRole",
    "MANAGE_ROLES",
    "Tenant",
    "VIEW_ROLES",
    "can_create_classroom",
    "can_manage_classroom",
    "can_see_roster",
    "can_view_classroom",
    "highest",
]
