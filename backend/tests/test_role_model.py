"""Role lattice and capability predicates."""

from __future__ import annotations

import pytest

from backend.identity_access.domain import (
    EffectiveRole,
    can_create_classroom,
    can_manage_classroom,
    can_see_roster,
    can_view_classroom,
    highest,
)


@pytest.mark.parametrize(
    "role, manage, view, create",
    [
        (EffectiveRole.SUPER_ADMIN, True, True, True),
        (EffectiveRole.TENANT_ADMIN, True, True, True),
        (EffectiveRole.TEACHER, True, True, False),
        (EffectiveRole.STUDENT, False, True, False),
        (EffectiveRole.NONE, False, False, False),
    ],
)
def test_capabilities_per_role(role, manage, view, create):
    assert can_manage_classroom(role) is manage
    assert can_view_classroom(role) is view
    assert can_create_classroom(role) is create


def test_students_do_not_see_roster():
    assert can_see_roster(EffectiveRole.STUDENT) is False
    assert can_see_roster(EffectiveRole.TEACHER) is True
    assert can_see_roster(EffectiveRole.TENANT_ADMIN) is True


def test_highest_prefers_admin_over_membership():
    assert highest(EffectiveRole.STUDENT, EffectiveRole.SUPER_ADMIN) is EffectiveRole.SUPER_ADMIN
    assert highest(EffectiveRole.TEACHER, EffectiveRole.STUDENT) is EffectiveRole.TEACHER
    assert highest() is EffectiveRole.NONE


def test_is_admin_flag():
    assert EffectiveRole.TENANT_ADMIN.is_admin
    assert not EffectiveRole.TEACHER.is_admin
