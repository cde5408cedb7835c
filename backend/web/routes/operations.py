"""Operations endpoints (health probe and internal service-to-service lookups)."""

from __future__ import annotations

import asyncio
import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from backend.classrooms.errors import ClassroomServiceError, Unauthenticated
from backend.identity_access.domain import Caller
from backend.web import wiring

operations_router = APIRouter(tags=["Operations"])
logger = logging.getLogger("classroom_service.web.operations")

START_TIME = time.monotonic()


def _private_response(body: dict, *, status_code: int) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


@operations_router.get("/health")
async def health_check():
    """Liveness plus a store probe; 503 when the store cannot answer."""
    try:
        await asyncio.to_thread(wiring.store().ping)
    except ClassroomServiceError as exc:
        logger.warning("health probe failed: err=%s", exc.code)
        return _private_response({"error": "store_unavailable"}, status_code=503)
    return _private_response({"status": "ok", "uptime": round(time.monotonic() - START_TIME, 3)}, status_code=200)


@operations_router.get("/internal/users/{user_id}/classrooms")
async def user_classrooms(request: Request, user_id: str, tenantId: str | None = None):
    """
    Return the classrooms `user_id` belongs to within `tenantId`.

    Permissions:
        Super admin (service account) or the user themself.
    """
    caller = getattr(request.state, "caller", None)
    if not isinstance(caller, Caller):
        raise Unauthenticated()
    tenant_id = tenantId or ""
    items = await asyncio.to_thread(
        wiring.classrooms_service().list_user_classrooms, caller, tenant_id, user_id
    )
    return _private_response({"userId": user_id, "tenantId": tenant_id, "classrooms": items}, status_code=200)
