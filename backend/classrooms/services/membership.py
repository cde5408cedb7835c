"""Classroom membership use cases (add/remove a student or teacher).

Why:
    Keeps the ordering of preconditions in one framework-free place:
    capability first, then the "exactly one target" rule, then (for add
    only) the directory check that the target belongs to the tenant.
    Removal deliberately skips the directory: it only touches the local set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from backend.logging_utils import id_tail
from backend.classrooms.authorization import AuthorizationResolver
from backend.classrooms.errors import ClassroomNotFound, UpstreamError, UserNotFound, ValidationError
from backend.classrooms.models import MemberKind
from backend.classrooms.store import ClassroomStoreProtocol
from backend.identity_access.directory import DirectoryError, DirectoryProtocol
from backend.identity_access.domain import Caller, DirectoryUser, can_manage_classroom

logger = logging.getLogger("classroom_service.classrooms.membership")


def _clean(value: object) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def pick_target(student_id: object, teacher_id: object) -> Tuple[MemberKind, str]:
    """Return (kind, id) when exactly one of the ids is given."""
    student = _clean(student_id)
    teacher = _clean(teacher_id)
    if (student is None) == (teacher is None):
        raise ValidationError("Student OR teacher required", detail="student_or_teacher_required")
    if student is not None:
        return MemberKind.STUDENT, student
    return MemberKind.TEACHER, teacher  # type: ignore[return-value]


def require_tenant_member(
    directory: DirectoryProtocol,
    tenant_id: str,
    user_id: str,
    *,
    label: str = "User",
) -> DirectoryUser:
    """Return the directory user when it exists AND belongs to `tenant_id`.

    Applies to every actor, super admins included.
    """
    try:
        user = directory.get_user(user_id)
    except DirectoryError as exc:
        logger.error("user lookup failed: user_tail=%s err=%s", id_tail(user_id), exc.code)
        raise UpstreamError("User directory unavailable", upstream=exc.payload) from exc
    if user is None or not user.is_member_of(tenant_id):
        logger.debug("%s not found in tenant: user_tail=%s tenant_tail=%s", label.lower(), id_tail(user_id), id_tail(tenant_id))
        raise UserNotFound(f"{label} not found")
    return user


@dataclass(frozen=True)
class MembershipChange:
    kind: MemberKind
    user_id: str
    changed: bool
    action: str

    @property
    def message(self) -> str:
        return f"{self.kind.label} {self.action}"


@dataclass
class MembershipService:
    """Use cases for classroom rosters (framework-independent)."""

    resolver: AuthorizationResolver
    directory: DirectoryProtocol
    store: ClassroomStoreProtocol

    def add_member(
        self,
        actor: Caller,
        tenant_id: str,
        classroom_id: str,
        *,
        student_id: object = None,
        teacher_id: object = None,
    ) -> MembershipChange:
        self.resolver.authorize(actor, tenant_id, classroom_id, capability=can_manage_classroom)
        kind, member_id = pick_target(student_id, teacher_id)
        require_tenant_member(self.directory, tenant_id, member_id, label=kind.label)
        try:
            added = self.store.add_member(tenant_id, classroom_id, kind, member_id)
        except LookupError as exc:
            raise ClassroomNotFound() from exc
        logger.info(
            "%s added: cid_tail=%s member_tail=%s new=%s",
            kind.value,
            id_tail(classroom_id),
            id_tail(member_id),
            added,
        )
        return MembershipChange(kind=kind, user_id=member_id, changed=added, action="added")

    def remove_member(
        self,
        actor: Caller,
        tenant_id: str,
        classroom_id: str,
        *,
        student_id: object = None,
        teacher_id: object = None,
    ) -> MembershipChange:
        self.resolver.authorize(actor, tenant_id, classroom_id, capability=can_manage_classroom)
        kind, member_id = pick_target(student_id, teacher_id)
        try:
            removed = self.store.remove_member(tenant_id, classroom_id, kind, member_id)
        except LookupError as exc:
            raise ClassroomNotFound() from exc
        logger.info(
            "%s removed: cid_tail=%s member_tail=%s present=%s",
            kind.value,
            id_tail(classroom_id),
            id_tail(member_id),
            removed,
        )
        return MembershipChange(kind=kind, user_id=member_id, changed=removed, action="removed")


__all__ = ["MembershipChange", "MembershipService", "pick_target", "require_tenant_member"]
