"""
Classroom API routes.

Why:
    Thin HTTP adapter over the classroom use cases. Handlers read the caller
    set by the auth middleware, run the (synchronous) use case in a worker
    thread and serialize the result. Failures are raised as
    `ClassroomServiceError` and rendered by the app-level exception handler.

Notes:
    - Payload fields are optional at the schema level so missing values reach
      the use case and come back as 400 with a stable `detail`, never 422.
    - Classroom-scoped bodies are read raw and validated by the use case after
      authorization: a stranger sends any body and gets 403, never 400.
    - All responses carry `Cache-Control: private, no-store`.
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from backend.classrooms.errors import Unauthenticated
from backend.classrooms.services.classrooms import classroom_dict, post_dict
from backend.identity_access.domain import Caller
from backend.web import wiring

classrooms_router = APIRouter(tags=["Classroom"])


def _json_private(body: Any, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def _caller(request: Request) -> Caller:
    caller = getattr(request.state, "caller", None)
    if not isinstance(caller, Caller):
        raise Unauthenticated()
    return caller


# --- Request models ---------------------------------------------------------------

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ClassroomCreatePayload(_Payload):
    name: str | None = Field(default=None, max_length=200)
    teacher_id: str | None = Field(default=None, alias="teacherId")


def _field(payload: Any, key: str) -> Any:
    """Value of `key` in a JSON object body; None for any other body shape."""
    if isinstance(payload, dict):
        return payload.get(key)
    return None


# --- Handlers ---------------------------------------------------------------------

@classrooms_router.post("/api/classroom/{tenant_id}")
async def create_classroom(request: Request, tenant_id: str, payload: ClassroomCreatePayload):
    """Create a classroom in `tenant_id` with a first teacher.

    Permissions:
        Tenant admin of `tenant_id` or super admin. The teacher must belong
        to the tenant.
    """
    caller = _caller(request)
    classroom = await asyncio.to_thread(
        wiring.classrooms_service().create_classroom,
        caller,
        tenant_id,
        name=payload.name,
        teacher_id=payload.teacher_id,
    )
    return _json_private({"message": "Classroom created", "classroom": classroom_dict(classroom)}, status_code=201)


@classrooms_router.get("/api/classroom/{tenant_id}/{classroom_id}")
async def get_classroom(request: Request, tenant_id: str, classroom_id: str):
    """Return the classroom; students do not see the student roster."""
    caller = _caller(request)
    view = await asyncio.to_thread(wiring.classrooms_service().get_classroom, caller, tenant_id, classroom_id)
    return _json_private(view)


@classrooms_router.patch("/api/classroom/{tenant_id}/{classroom_id}")
async def add_member(request: Request, tenant_id: str, classroom_id: str, payload: Any = Body(default=None)):
    """Add exactly one student or teacher; adding an existing member is a no-op."""
    caller = _caller(request)
    change = await asyncio.to_thread(
        wiring.membership_service().add_member,
        caller,
        tenant_id,
        classroom_id,
        student_id=_field(payload, "studentId"),
        teacher_id=_field(payload, "teacherId"),
    )
    return _json_private({"message": change.message})


@classrooms_router.delete("/api/classroom/{tenant_id}/{classroom_id}")
async def remove_member(request: Request, tenant_id: str, classroom_id: str, payload: Any = Body(default=None)):
    """Remove exactly one student or teacher; removing a non-member is a no-op."""
    caller = _caller(request)
    change = await asyncio.to_thread(
        wiring.membership_service().remove_member,
        caller,
        tenant_id,
        classroom_id,
        student_id=_field(payload, "studentId"),
        teacher_id=_field(payload, "teacherId"),
    )
    return _json_private({"message": change.message})


@classrooms_router.patch("/api/classroom/{tenant_id}/{classroom_id}/content")
async def set_content(request: Request, tenant_id: str, classroom_id: str, payload: Any = Body(default=None)):
    caller = _caller(request)
    await asyncio.to_thread(wiring.content_service().set_content, caller, tenant_id, classroom_id, _field(payload, "content"))
    return _json_private({"message": "Content modified"})


@classrooms_router.post("/api/classroom/{tenant_id}/{classroom_id}/forumPost")
async def post_to_forum(request: Request, tenant_id: str, classroom_id: str, payload: Any = Body(default=None)):
    caller = _caller(request)
    post = await asyncio.to_thread(wiring.content_service().post_to_forum, caller, tenant_id, classroom_id, _field(payload, "content"))
    return _json_private({"message": "Post created", "post": post_dict(post)}, status_code=201)


@classrooms_router.post("/api/classroom/{tenant_id}/{classroom_id}/schedule")
async def schedule_event(request: Request, tenant_id: str, classroom_id: str, payload: Any = Body(default=None)):
    """Forward a recurrence request to the scheduling service.

    Behavior:
        - `repeatUntil` that cannot be parsed means an open-ended recurrence.
        - 502 with the scheduling service's error payload on failure.
    """
    caller = _caller(request)
    spec, response = await asyncio.to_thread(
        wiring.schedule_service().schedule_event,
        caller,
        tenant_id,
        classroom_id,
        start=_field(payload, "start"),
        end=_field(payload, "end"),
        frequency=_field(payload, "repeat"),
        repeat_until=_field(payload, "repeatUntil"),
    )
    return _json_private({"message": "Event added", "event": response or spec.to_dict()})


@classrooms_router.get("/api/classrooms/{tenant_id}")
async def list_classrooms(request: Request, tenant_id: str):
    """List classrooms: every classroom for admins, own classrooms otherwise."""
    caller = _caller(request)
    items = await asyncio.to_thread(wiring.classrooms_service().list_classrooms, caller, tenant_id)
    return _json_private(items)
