"""
Classroom lifecycle and read use cases.

Why:
    Creation is the only operation with a strict tenant lookup: a classroom
    must never be created for a tenant the directory does not know. Reads
    shape the classroom according to the caller's role so the web layer can
    serialize whatever it receives.

Visibility:
    - Admins and teachers see the full classroom, student roster included.
    - Students see everything except `students`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from backend.logging_utils import id_tail
from backend.classrooms.authorization import AuthorizationResolver
from backend.classrooms.errors import ClassroomNotFound, Forbidden, ValidationError
from backend.classrooms.models import Classroom, ForumPost
from backend.classrooms.services.membership import require_tenant_member
from backend.classrooms.store import ClassroomStoreProtocol
from backend.identity_access.directory import DirectoryProtocol
from backend.identity_access.domain import (
    Caller,
    EffectiveRole,
    can_create_classroom,
    can_see_roster,
    can_view_classroom,
)

logger = logging.getLogger("classroom_service.classrooms")


def post_dict(post: ForumPost) -> Dict[str, Any]:
    return {"id": post.id, "author": post.author, "content": post.content, "createdAt": post.created_at}


def classroom_dict(classroom: Classroom) -> Dict[str, Any]:
    return {
        "id": classroom.id,
        "tenantId": classroom.tenant_id,
        "name": classroom.name,
        "teachers": list(classroom.teachers),
        "students": list(classroom.students),
        "content": classroom.content,
        "forumPosts": [post_dict(p) for p in classroom.forum_posts],
    }


def classroom_view(classroom: Classroom, role: EffectiveRole) -> Dict[str, Any]:
    """Serialize a classroom for a caller holding `role`."""
    view = classroom_dict(classroom)
    if not can_see_roster(role):
        del view["students"]
    return view


@dataclass
class ClassroomsService:
    resolver: AuthorizationResolver
    directory: DirectoryProtocol
    store: ClassroomStoreProtocol

    def create_classroom(self, actor: Caller, tenant_id: str, *, name: object, teacher_id: object) -> Classroom:
        """Create a classroom with `teacher_id` as its first teacher.

        Order: parameters, tenant (strict), capability, teacher membership.
        """
        clean_name = name.strip() if isinstance(name, str) else ""
        clean_teacher = teacher_id.strip() if isinstance(teacher_id, str) else ""
        if not clean_name or not clean_teacher:
            raise ValidationError("Classroom name and teacher are required", detail="missing_parameters")
        self.resolver.authorize(actor, tenant_id, capability=can_create_classroom, require_tenant=True)
        require_tenant_member(self.directory, tenant_id, clean_teacher, label="Teacher")
        classroom = self.store.create_classroom(tenant_id=tenant_id, name=clean_name, teacher_id=clean_teacher)
        logger.info(
            "classroom created: tenant_tail=%s cid_tail=%s teacher_tail=%s",
            id_tail(tenant_id),
            id_tail(classroom.id),
            id_tail(clean_teacher),
        )
        return classroom

    def get_classroom(self, actor: Caller, tenant_id: str, classroom_id: str) -> Dict[str, Any]:
        resolution = self.resolver.authorize(actor, tenant_id, classroom_id, capability=can_view_classroom)
        if resolution.classroom is None:
            raise ClassroomNotFound()
        return classroom_view(resolution.classroom, resolution.role)

    def list_classrooms(self, actor: Caller, tenant_id: str) -> List[Dict[str, Any]]:
        """Admins list every classroom of the tenant; others list their own."""
        role = self.resolver.resolve(actor, tenant_id).role
        if role.is_admin:
            return [
                {"id": c.id, "name": c.name, "teachers": list(c.teachers), "students": list(c.students)}
                for c in self.store.list_classrooms(tenant_id)
            ]
        return [{"id": c.id, "name": c.name} for c in self.store.list_classrooms_for_user(tenant_id, actor.id)]

    def list_user_classrooms(self, actor: Caller, tenant_id: str, user_id: str) -> List[Dict[str, Any]]:
        """Classrooms `user_id` belongs to, for internal callers."""
        if not (isinstance(tenant_id, str) and tenant_id.strip()) or not (isinstance(user_id, str) and user_id.strip()):
            raise ValidationError("User and tenant ids are required", detail="missing_parameters")
        if not (actor.is_super_admin or actor.id == user_id):
            logger.info("forbidden: caller_tail=%s user_tail=%s", id_tail(actor.id), id_tail(user_id))
            raise Forbidden()
        return [
            {"tenantId": c.tenant_id, "classroomId": c.id, "name": c.name}
            for c in self.store.list_classrooms_for_user(tenant_id, user_id)
        ]


__all__ = ["ClassroomsService", "classroom_dict", "classroom_view", "post_dict"]
