"""
Scheduling service adapter.

Why:
    The scheduling service creates calendar events and expands recurrences.
    This adapter sends it a normalized `RecurrenceSpec` and reports its answer
    unchanged: the response body on success, the error body on failure.

Behavior:
    - POST `{SCHEDULE_SERVICE_URL}/events` with the JSON wire payload.
    - Timeout from `SCHEDULE_TIMEOUT_SECONDS` (default 10s); no retries.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Protocol

import requests

from backend.scheduling.recurrence import RecurrenceSpec

logger = logging.getLogger("classroom_service.scheduling.client")


class SchedulingError(Exception):
    """Raised when the scheduling service rejects or fails a request."""

    def __init__(self, code: str, payload: Any = None):
        super().__init__(code)
        self.code = code
        self.payload = payload if payload is not None else {"code": code}


class SchedulingClientProtocol(Protocol):
    def create_event(self, spec: RecurrenceSpec, *, tenant_id: str, classroom_id: str) -> Dict[str, Any]:
        ...


class SchedulingClient:
    def __init__(self, base_url: str | None = None, *, timeout: float | None = None) -> None:
        self.base_url = (base_url or os.getenv("SCHEDULE_SERVICE_URL", "http://localhost:3020")).rstrip("/")
        self.timeout = timeout if timeout is not None else float(os.getenv("SCHEDULE_TIMEOUT_SECONDS", "10"))

    def create_event(self, spec: RecurrenceSpec, *, tenant_id: str, classroom_id: str) -> Dict[str, Any]:
        payload = spec.to_payload(tenant_id=tenant_id, classroom_id=classroom_id)
        try:
            r = requests.post(f"{self.base_url}/events", json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise SchedulingError("schedule_unreachable", {"type": exc.__class__.__name__}) from exc
        try:
            body = r.json()
        except ValueError:
            body = None
        if r.status_code >= 400:
            logger.warning("schedule service rejected event: status=%s", r.status_code)
            raise SchedulingError(
                "schedule_rejected",
                body if body is not None else {"status": r.status_code},
            )
        return body if isinstance(body, dict) else {}


__all__ = ["SchedulingClient", "SchedulingClientProtocol", "SchedulingError"]
