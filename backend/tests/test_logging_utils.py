from __future__ import annotations

from backend.logging_utils import id_tail


def test_id_tail_keeps_last_six_without_dashes():
    assert id_tail("5b0d1c9e-3f4a-4c1b-9d6e-2a7f8e9b0c1d") == "9b0c1d"
    assert id_tail("ab-c") == "abc"
    assert id_tail(None) == ""
