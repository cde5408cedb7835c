"""Classroom records as seen by use cases (plain dataclasses, no ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class MemberKind(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"

    @property
    def field(self) -> str:
        # Column/attribute holding this kind of member
        return "students" if self is MemberKind.STUDENT else "teachers"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass
class ForumPost:
    id: str
    author: str
    content: str
    created_at: str


@dataclass
class Classroom:
    id: str
    tenant_id: str
    name: str
    # Set semantics; stores keep insertion order and never hold duplicates.
    teachers: List[str] = field(default_factory=list)
    students: List[str] = field(default_factory=list)
    content: str = ""
    forum_posts: List[ForumPost] = field(default_factory=list)

    def members(self, kind: MemberKind) -> List[str]:
        return self.students if kind is MemberKind.STUDENT else self.teachers

    def has_teacher(self, user_id: str) -> bool:
        return user_id in self.teachers

    def has_student(self, user_id: str) -> bool:
        return user_id in self.students
