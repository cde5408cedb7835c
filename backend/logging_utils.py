"""Log helpers shared by all bounded contexts.

Identifiers are never logged in full; `id_tail` keeps the last six characters
(dashes removed), enough to correlate log lines without exposing ids.
"""
from __future__ import annotations


def id_tail(value: str | None) -> str:
    return (value or "").replace("-", "")[-6:]


__all__ = ["id_tail"]
