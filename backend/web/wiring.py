"""
Collaborator wiring for the web adapter.

Why:
    Routes build use cases from three module-level collaborators (store,
    directory, scheduling client). They are created lazily so importing the
    app never touches the network or the database, and tests swap them via
    `set_store` / `set_directory` / `set_scheduling_client`.

Store selection:
    Postgres when psycopg and a DSN are available; otherwise the in-memory
    store with a warning (local development only).
"""
from __future__ import annotations

import logging
from typing import Optional

from backend.classrooms.authorization import AuthorizationResolver
from backend.classrooms.services.classrooms import ClassroomsService
from backend.classrooms.services.content import ContentService
from backend.classrooms.services.membership import MembershipService
from backend.classrooms.services.schedule import ScheduleService
from backend.classrooms.store import ClassroomStoreProtocol, InMemoryClassroomStore
from backend.identity_access.directory import DirectoryClient, DirectoryProtocol
from backend.scheduling.client import SchedulingClient, SchedulingClientProtocol

logger = logging.getLogger("classroom_service.web.wiring")

_STORE: Optional[ClassroomStoreProtocol] = None
_DIRECTORY: Optional[DirectoryProtocol] = None
_SCHEDULER: Optional[SchedulingClientProtocol] = None


def _build_default_store() -> ClassroomStoreProtocol:
    try:
        from backend.classrooms.repo_db import DBClassroomStore

        return DBClassroomStore()
    except RuntimeError as exc:
        logger.warning("Classroom store unavailable (%s); using in-memory fallback", exc)
        return InMemoryClassroomStore()


def _get_store() -> ClassroomStoreProtocol:
    global _STORE
    if _STORE is None:
        _STORE = _build_default_store()
    return _STORE


def _get_directory() -> DirectoryProtocol:
    global _DIRECTORY
    if _DIRECTORY is None:
        _DIRECTORY = DirectoryClient()
    return _DIRECTORY


def _get_scheduling_client() -> SchedulingClientProtocol:
    global _SCHEDULER
    if _SCHEDULER is None:
        _SCHEDULER = SchedulingClient()
    return _SCHEDULER


def set_store(store: Optional[ClassroomStoreProtocol]) -> None:
    """Allow tests to swap the classroom store (None resets to the default)."""
    global _STORE
    _STORE = store


def set_directory(directory: Optional[DirectoryProtocol]) -> None:
    global _DIRECTORY
    _DIRECTORY = directory


def set_scheduling_client(client: Optional[SchedulingClientProtocol]) -> None:
    global _SCHEDULER
    _SCHEDULER = client


def _resolver() -> AuthorizationResolver:
    return AuthorizationResolver(directory=_get_directory(), store=_get_store())


def classrooms_service() -> ClassroomsService:
    return ClassroomsService(resolver=_resolver(), directory=_get_directory(), store=_get_store())


def membership_service() -> MembershipService:
    return MembershipService(resolver=_resolver(), directory=_get_directory(), store=_get_store())


def content_service() -> ContentService:
    return ContentService(resolver=_resolver(), store=_get_store())


def schedule_service() -> ScheduleService:
    return ScheduleService(resolver=_resolver(), client=_get_scheduling_client())


def store() -> ClassroomStoreProtocol:
    return _get_store()
