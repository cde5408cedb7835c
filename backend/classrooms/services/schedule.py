"""Recurrence request builder: classroom schedule events.

Why:
    Teachers and admins attach calendar events to a classroom. This use case
    authorizes the caller, normalizes the request into a `RecurrenceSpec`
    and forwards it to the scheduling service. Expansion of occurrences is
    the scheduling service's job; its answer (success or error payload) is
    passed through unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from backend.logging_utils import id_tail
from backend.classrooms.authorization import AuthorizationResolver
from backend.classrooms.errors import UpstreamError, ValidationError
from backend.identity_access.domain import Caller, can_manage_classroom
from backend.scheduling.client import SchedulingClientProtocol, SchedulingError
from backend.scheduling.recurrence import RecurrenceSpec, build_recurrence_spec

logger = logging.getLogger("classroom_service.classrooms.schedule")

_MESSAGES = {
    "invalid_start": "Start must be a valid timestamp",
    "invalid_end": "End must be a valid timestamp",
    "start_must_precede_end": "Start must be before end",
    "invalid_frequency": "Repeat must be one of NONE, DAILY, WEEKLY, MONTHLY, YEARLY",
}


@dataclass
class ScheduleService:
    resolver: AuthorizationResolver
    client: SchedulingClientProtocol

    def build_schedule_request(
        self,
        actor: Caller,
        tenant_id: str,
        classroom_id: str,
        *,
        start: object,
        end: object,
        frequency: object,
        repeat_until: object = None,
    ) -> RecurrenceSpec:
        self.resolver.authorize(actor, tenant_id, classroom_id, capability=can_manage_classroom)
        if start is None or end is None or frequency is None:
            raise ValidationError("Start, end and repeat are required", detail="missing_parameters")
        try:
            return build_recurrence_spec(start=start, end=end, frequency=frequency, repeat_until=repeat_until)
        except ValueError as exc:
            code = str(exc)
            logger.debug("schedule request rejected: cid_tail=%s detail=%s", id_tail(classroom_id), code)
            raise ValidationError(_MESSAGES.get(code, "Invalid schedule request"), detail=code) from exc

    def schedule_event(
        self,
        actor: Caller,
        tenant_id: str,
        classroom_id: str,
        *,
        start: object,
        end: object,
        frequency: object,
        repeat_until: object = None,
    ) -> Tuple[RecurrenceSpec, Dict[str, Any]]:
        """Build the recurrence and dispatch it; return (recurrence, service response)."""
        spec = self.build_schedule_request(
            actor,
            tenant_id,
            classroom_id,
            start=start,
            end=end,
            frequency=frequency,
            repeat_until=repeat_until,
        )
        try:
            response = self.client.create_event(spec, tenant_id=tenant_id, classroom_id=classroom_id)
        except SchedulingError as exc:
            logger.error("schedule event failed: cid_tail=%s err=%s", id_tail(classroom_id), exc.code)
            raise UpstreamError("Error creating schedule event", upstream=exc.payload) from exc
        logger.info(
            "event added: cid_tail=%s repeat=%s open_ended=%s",
            id_tail(classroom_id),
            spec.frequency.value,
            spec.open_ended,
        )
        return spec, response


__all__ = ["ScheduleService"]
