"""Unit tests for the AuthorizationResolver.

Focus:
    - Role folding (super admin, tenant admin, teacher, student, none)
    - Strict tenant lookup for creation vs. tolerant lookup elsewhere
    - Tenant scoping of classroom reads
"""

from __future__ import annotations

import logging

import pytest

from backend.classrooms.authorization import AuthorizationResolver
from backend.classrooms.errors import ClassroomNotFound, Forbidden, TenantNotFound, UpstreamError
from backend.classrooms.models import MemberKind
from backend.classrooms.store import InMemoryClassroomStore
from backend.identity_access.directory import DirectoryError
from backend.identity_access.domain import Caller, EffectiveRole, can_manage_classroom, can_view_classroom
from utils.fakes import FakeDirectory


@pytest.fixture
def setup():
    directory = FakeDirectory()
    directory.add_tenant("t1", admin_id="admin-1")
    directory.add_tenant("t2", admin_id="admin-2")
    store = InMemoryClassroomStore()
    classroom = store.create_classroom(tenant_id="t1", name="Physics", teacher_id="teacher-1")
    store.add_member("t1", classroom.id, MemberKind.STUDENT, "student-1")
    return AuthorizationResolver(directory=directory, store=store), directory, classroom


def test_super_admin_resolves_everywhere(setup):
    resolver, _, classroom = setup
    res = resolver.resolve(Caller("root", is_super_admin=True), "t1", classroom.id)
    assert res.role is EffectiveRole.SUPER_ADMIN
    assert can_manage_classroom(res.role)


def test_tenant_admin_without_classroom(setup):
    resolver, _, _ = setup
    res = resolver.resolve(Caller("admin-1"), "t1")
    assert res.role is EffectiveRole.TENANT_ADMIN
    assert res.classroom is None


def test_admin_of_other_tenant_is_not_admin(setup):
    resolver, _, classroom = setup
    with pytest.raises(Forbidden):
        resolver.authorize(Caller("admin-2"), "t1", classroom.id, capability=can_view_classroom)


def test_teacher_and_student_roles(setup):
    resolver, _, classroom = setup
    assert resolver.resolve(Caller("teacher-1"), "t1", classroom.id).role is EffectiveRole.TEACHER
    assert resolver.resolve(Caller("student-1"), "t1", classroom.id).role is EffectiveRole.STUDENT
    assert resolver.resolve(Caller("stranger"), "t1", classroom.id).role is EffectiveRole.NONE


def test_classroom_read_is_tenant_scoped(setup):
    resolver, _, classroom = setup
    with pytest.raises(ClassroomNotFound):
        resolver.resolve(Caller("admin-2"), "t2", classroom.id)


def test_missing_tenant_is_strict_only_for_creation(setup):
    resolver, _, _ = setup
    with pytest.raises(TenantNotFound):
        resolver.resolve(Caller("root", is_super_admin=True), "nope", require_tenant=True)
    res = resolver.resolve(Caller("root", is_super_admin=True), "nope")
    assert res.role is EffectiveRole.SUPER_ADMIN
    assert res.tenant is None


def test_directory_failure_is_tolerated_outside_creation(setup, caplog):
    resolver, directory, classroom = setup
    directory.tenant_error = DirectoryError("directory_unreachable")
    with caplog.at_level(logging.WARNING, logger="classroom_service.classrooms.authorization"):
        res = resolver.resolve(Caller("teacher-1"), "t1", classroom.id)
    assert res.role is EffectiveRole.TEACHER
    assert any("tenant lookup failed" in r.getMessage() for r in caplog.records)
    # Tenant admins lose their admin role while the directory is down.
    assert resolver.resolve(Caller("admin-1"), "t1", classroom.id).role is EffectiveRole.NONE


def test_directory_failure_is_upstream_error_for_creation(setup):
    resolver, directory, _ = setup
    directory.tenant_error = DirectoryError("directory_unreachable", {"type": "ConnectionError"})
    with pytest.raises(UpstreamError) as ei:
        resolver.resolve(Caller("admin-1"), "t1", require_tenant=True)
    assert ei.value.upstream == {"type": "ConnectionError"}


def test_authorize_returns_resolution_with_classroom(setup):
    resolver, _, classroom = setup
    res = resolver.authorize(Caller("student-1"), "t1", classroom.id, capability=can_view_classroom)
    assert res.classroom is not None and res.classroom.id == classroom.id
    with pytest.raises(Forbidden):
        resolver.authorize(Caller("student-1"), "t1", classroom.id, capability=can_manage_classroom)
