"""
Authorization resolver: the caller's effective role in a tenant/classroom.

Why:
    Role facts come from two independent systems (tenant directory, classroom
    store) that are never read atomically together. The resolver fetches them
    one after another and folds them into a single `EffectiveRole`, which
    every use case checks with the capability predicates of the role model.

Behavior:
    1. SUPER_ADMIN when the caller carries the global flag, else NONE.
    2. Tenant lookup. With `require_tenant=True` (classroom creation) a
       missing tenant raises `TenantNotFound` and a directory failure raises
       `UpstreamError`. Otherwise both are tolerated and only the admin check
       evaluates false; resolution continues with classroom membership.
    3. Tenant admin of this tenant -> TENANT_ADMIN (SUPER_ADMIN still wins).
    4. With a classroom id: read the classroom scoped by tenant AND id
       (`ClassroomNotFound` when absent); teacher -> TEACHER, student ->
       STUDENT, each only if nothing higher was found.

Side effects: none. Failures are signaled, never retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from backend.logging_utils import id_tail
from backend.classrooms.errors import ClassroomNotFound, Forbidden, TenantNotFound, UpstreamError
from backend.classrooms.models import Classroom
from backend.classrooms.store import ClassroomStoreProtocol
from backend.identity_access.directory import DirectoryError, DirectoryProtocol
from backend.identity_access.domain import Caller, EffectiveRole, Tenant, highest

logger = logging.getLogger("classroom_service.classrooms.authorization")

Capability = Callable[[EffectiveRole], bool]


@dataclass(frozen=True)
class Resolution:
    """Role plus the views it was computed from (reused by the use case)."""

    role: EffectiveRole
    tenant: Optional[Tenant] = None
    classroom: Optional[Classroom] = None


@dataclass
class AuthorizationResolver:
    directory: DirectoryProtocol
    store: ClassroomStoreProtocol

    def _lookup_tenant(self, tenant_id: str, *, strict: bool) -> Optional[Tenant]:
        try:
            tenant = self.directory.get_tenant(tenant_id)
        except DirectoryError as exc:
            if strict:
                logger.error("tenant lookup failed: tenant_tail=%s err=%s", id_tail(tenant_id), exc.code)
                raise UpstreamError("Tenant directory unavailable", upstream=exc.payload) from exc
            # Non-creation operations degrade to membership-only checks.
            logger.warning(
                "tenant lookup failed, continuing without admin check: tenant_tail=%s err=%s",
                id_tail(tenant_id),
                exc.code,
            )
            return None
        if tenant is None and strict:
            logger.debug("tenant not found: tenant_tail=%s", id_tail(tenant_id))
            raise TenantNotFound()
        return tenant

    def resolve(
        self,
        caller: Caller,
        tenant_id: str,
        classroom_id: Optional[str] = None,
        *,
        require_tenant: bool = False,
    ) -> Resolution:
        role = EffectiveRole.SUPER_ADMIN if caller.is_super_admin else EffectiveRole.NONE

        tenant = self._lookup_tenant(tenant_id, strict=require_tenant)
        if tenant is not None and tenant.admin_id is not None and tenant.admin_id == caller.id:
            role = highest(role, EffectiveRole.TENANT_ADMIN)

        classroom = None
        if classroom_id is not None:
            classroom = self.store.read_classroom(tenant_id, classroom_id)
            if classroom is None:
                logger.debug(
                    "classroom not found: tenant_tail=%s cid_tail=%s", id_tail(tenant_id), id_tail(classroom_id)
                )
                raise ClassroomNotFound()
            if classroom.has_teacher(caller.id):
                role = highest(role, EffectiveRole.TEACHER)
            elif classroom.has_student(caller.id):
                role = highest(role, EffectiveRole.STUDENT)

        return Resolution(role=role, tenant=tenant, classroom=classroom)

    def authorize(
        self,
        caller: Caller,
        tenant_id: str,
        classroom_id: Optional[str] = None,
        *,
        capability: Capability,
        require_tenant: bool = False,
    ) -> Resolution:
        """Resolve and raise `Forbidden` unless `capability(role)` holds."""
        resolution = self.resolve(caller, tenant_id, classroom_id, require_tenant=require_tenant)
        if not capability(resolution.role):
            logger.info(
                "forbidden: caller_tail=%s tenant_tail=%s cid_tail=%s role=%s capability=%s",
                id_tail(caller.id),
                id_tail(tenant_id),
                id_tail(classroom_id),
                resolution.role.value,
                getattr(capability, "__name__", "capability"),
            )
            raise Forbidden()
        return resolution


__all__ = ["AuthorizationResolver", "Capability", "Resolution"]
