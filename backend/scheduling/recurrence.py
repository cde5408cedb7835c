"""
Recurrence requests handed to the scheduling service.

Why:
    The scheduling service owns occurrence expansion. This module only
    normalizes a request into a well-defined `RecurrenceSpec`: parsed,
    timezone-aware start/end, a recognized frequency and an optional end date.

Parsing rules:
    - Timestamps are ISO-8601 strings or epoch milliseconds (int, float or a
      string of at least ten digits). Naive values are interpreted as UTC.
    - `repeat_until` is resolved exactly once by `parse_optional_timestamp`:
      anything unparseable means "no end date" (open-ended recurrence) and is
      never an error. With frequency NONE the end date carries no meaning and
      is dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

# Digit strings shorter than 10 digits are compact ISO dates, not epoch ms.
_EPOCH_MS = re.compile(r"^\d{10,}(\.\d+)?$")


class Frequency(str, Enum):
    NONE = "NONE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


def _from_epoch_ms(value: float) -> datetime:
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError("invalid_timestamp") from exc


def parse_timestamp(value: object) -> datetime:
    """Parse a required timestamp; raise ValueError("invalid_timestamp")."""
    if value is None or isinstance(value, bool):
        raise ValueError("invalid_timestamp")
    if isinstance(value, (int, float)):
        return _from_epoch_ms(float(value))
    if not isinstance(value, str):
        raise ValueError("invalid_timestamp")
    raw = value.strip()
    if not raw:
        raise ValueError("invalid_timestamp")
    if _EPOCH_MS.match(raw):
        return _from_epoch_ms(float(raw))
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError("invalid_timestamp") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_optional_timestamp(value: object) -> Optional[datetime]:
    """Tolerant parse: None for absent *or* unparseable input."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        return None


def parse_frequency(value: object) -> Frequency:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("invalid_frequency")
    try:
        return Frequency(value.strip().upper())
    except ValueError as exc:
        raise ValueError("invalid_frequency") from exc


def to_epoch_ms(value: datetime) -> int:
    return int(round(value.timestamp() * 1000))


@dataclass(frozen=True)
class RecurrenceSpec:
    start: datetime
    end: datetime
    frequency: Frequency
    repeat_until: Optional[datetime] = None

    @property
    def open_ended(self) -> bool:
        return self.frequency is not Frequency.NONE and self.repeat_until is None

    def to_payload(self, *, tenant_id: str, classroom_id: str) -> Dict[str, Any]:
        """Wire shape expected by the scheduling service (epoch milliseconds)."""
        payload: Dict[str, Any] = {
            "tenantId": tenant_id,
            "classroom": classroom_id,
            "start": to_epoch_ms(self.start),
            "end": to_epoch_ms(self.end),
            "repeat": self.frequency.value,
        }
        if self.repeat_until is not None:
            payload["repeatEnd"] = to_epoch_ms(self.repeat_until)
        return payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "frequency": self.frequency.value,
            "repeatUntil": self.repeat_until.isoformat() if self.repeat_until else None,
        }


def build_recurrence_spec(
    *,
    start: object,
    end: object,
    frequency: object,
    repeat_until: object = None,
) -> RecurrenceSpec:
    """Normalize raw request values into a `RecurrenceSpec`.

    Raises ValueError with one of: invalid_start, invalid_end,
    start_must_precede_end, invalid_frequency.
    """
    try:
        start_dt = parse_timestamp(start)
    except ValueError as exc:
        raise ValueError("invalid_start") from exc
    try:
        end_dt = parse_timestamp(end)
    except ValueError as exc:
        raise ValueError("invalid_end") from exc
    if not start_dt < end_dt:
        raise ValueError("start_must_precede_end")
    freq = parse_frequency(frequency)
    until = parse_optional_timestamp(repeat_until)
    if freq is Frequency.NONE:
        until = None
    return RecurrenceSpec(start=start_dt, end=end_dt, frequency=freq, repeat_until=until)


__all__ = [
    "Frequency",
    "RecurrenceSpec",
    "build_recurrence_spec",
    "parse_frequency",
    "parse_optional_timestamp",
    "parse_timestamp",
    "to_epoch_ms",
]
