"""Classroom content and forum use cases."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from backend.logging_utils import id_tail
from backend.classrooms.authorization import AuthorizationResolver
from backend.classrooms.errors import ClassroomNotFound, ValidationError
from backend.classrooms.models import ForumPost
from backend.classrooms.store import ClassroomStoreProtocol
from backend.identity_access.domain import Caller, can_manage_classroom, can_view_classroom

logger = logging.getLogger("classroom_service.classrooms.content")


def _normalize_content(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Content required", detail="content_required")
    return value


@dataclass
class ContentService:
    resolver: AuthorizationResolver
    store: ClassroomStoreProtocol

    def set_content(self, actor: Caller, tenant_id: str, classroom_id: str, content: object) -> None:
        """Overwrite the classroom's freeform content (teachers and admins)."""
        self.resolver.authorize(actor, tenant_id, classroom_id, capability=can_manage_classroom)
        text = _normalize_content(content)
        if not self.store.write_classroom_field(tenant_id, classroom_id, "content", text):
            raise ClassroomNotFound()
        logger.info("content modified: cid_tail=%s size=%s", id_tail(classroom_id), len(text))

    def post_to_forum(self, actor: Caller, tenant_id: str, classroom_id: str, content: object) -> ForumPost:
        """Append a post authored by `actor`; any classroom viewer may post."""
        self.resolver.authorize(actor, tenant_id, classroom_id, capability=can_view_classroom)
        text = _normalize_content(content)
        try:
            post = self.store.append_forum_post(tenant_id, classroom_id, author=actor.id, content=text)
        except LookupError as exc:
            raise ClassroomNotFound() from exc
        logger.info("post created: cid_tail=%s post_tail=%s", id_tail(classroom_id), id_tail(post.id))
        return post


__all__ = ["ContentService"]
