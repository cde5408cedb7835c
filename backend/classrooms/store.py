"""
Classroom store protocol and the in-memory implementation.

Why:
    Use cases depend on a narrow store interface so the Postgres adapter
    (`repo_db.DBClassroomStore`) and this in-memory store are interchangeable.
    The in-memory store backs local development and the test-suite.

Consistency:
    Membership changes go through `add_member` / `remove_member`, which are
    atomic set operations. No caller reads the whole roster, edits it in
    process and writes it back, so concurrent adds/removes never lose an
    update and a retried add never duplicates an id.
"""

from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from backend.classrooms.models import Classroom, ForumPost, MemberKind

# Fields a whole-field overwrite may touch; `tenant_id` is immutable.
WRITABLE_FIELDS = frozenset({"name", "content"})


class ClassroomStoreProtocol(Protocol):
    def create_classroom(self, *, tenant_id: str, name: str, teacher_id: str) -> Classroom:
        ...

    def read_classroom(self, tenant_id: str, classroom_id: str) -> Optional[Classroom]:
        ...

    def write_classroom_field(self, tenant_id: str, classroom_id: str, field: str, value: str) -> bool:
        ...

    def add_member(self, tenant_id: str, classroom_id: str, kind: MemberKind, user_id: str) -> bool:
        ...

    def remove_member(self, tenant_id: str, classroom_id: str, kind: MemberKind, user_id: str) -> bool:
        ...

    def append_forum_post(self, tenant_id: str, classroom_id: str, *, author: str, content: str) -> ForumPost:
        ...

    def list_classrooms(self, tenant_id: str) -> List[Classroom]:
        ...

    def list_classrooms_for_user(self, tenant_id: str, user_id: str) -> List[Classroom]:
        ...

    def ping(self) -> None:
        ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def ensure_writable(field: str) -> None:
    if field not in WRITABLE_FIELDS:
        raise ValueError("field_not_writable")


class InMemoryClassroomStore:
    """Process-local store; every operation holds one lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.classrooms: Dict[str, Classroom] = {}

    def _scoped(self, tenant_id: str, classroom_id: str) -> Optional[Classroom]:
        c = self.classrooms.get(classroom_id)
        if c is None or c.tenant_id != tenant_id:
            return None
        return c

    def _require(self, tenant_id: str, classroom_id: str) -> Classroom:
        c = self._scoped(tenant_id, classroom_id)
        if c is None:
            raise LookupError("classroom_not_found")
        return c

    def create_classroom(self, *, tenant_id: str, name: str, teacher_id: str) -> Classroom:
        classroom = Classroom(
            id=str(uuid4()),
            tenant_id=tenant_id,
            name=name,
            teachers=[teacher_id],
            students=[],
            content="",
        )
        with self._lock:
            self.classrooms[classroom.id] = classroom
            return copy.deepcopy(classroom)

    def read_classroom(self, tenant_id: str, classroom_id: str) -> Optional[Classroom]:
        with self._lock:
            c = self._scoped(tenant_id, classroom_id)
            # Hand out snapshots so callers cannot mutate stored state
            return copy.deepcopy(c) if c is not None else None

    def write_classroom_field(self, tenant_id: str, classroom_id: str, field: str, value: str) -> bool:
        ensure_writable(field)
        with self._lock:
            c = self._scoped(tenant_id, classroom_id)
            if c is None:
                return False
            setattr(c, field, value)
            return True

    def add_member(self, tenant_id: str, classroom_id: str, kind: MemberKind, user_id: str) -> bool:
        with self._lock:
            bucket = self._require(tenant_id, classroom_id).members(kind)
            if user_id in bucket:
                return False
            bucket.append(user_id)
            return True

    def remove_member(self, tenant_id: str, classroom_id: str, kind: MemberKind, user_id: str) -> bool:
        with self._lock:
            bucket = self._require(tenant_id, classroom_id).members(kind)
            if user_id not in bucket:
                return False
            bucket.remove(user_id)
            return True

    def append_forum_post(self, tenant_id: str, classroom_id: str, *, author: str, content: str) -> ForumPost:
        post = ForumPost(id=str(uuid4()), author=author, content=content, created_at=_now_iso())
        with self._lock:
            self._require(tenant_id, classroom_id).forum_posts.append(post)
        return copy.deepcopy(post)

    def list_classrooms(self, tenant_id: str) -> List[Classroom]:
        with self._lock:
            return [copy.deepcopy(c) for c in self.classrooms.values() if c.tenant_id == tenant_id]

    def list_classrooms_for_user(self, tenant_id: str, user_id: str) -> List[Classroom]:
        with self._lock:
            return [
                copy.deepcopy(c)
                for c in self.classrooms.values()
                if c.tenant_id == tenant_id and (c.has_student(user_id) or c.has_teacher(user_id))
            ]

    def ping(self) -> None:
        return None


__all__ = ["ClassroomStoreProtocol", "InMemoryClassroomStore", "WRITABLE_FIELDS", "ensure_writable"]
