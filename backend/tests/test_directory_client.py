"""
Directory client: GraphQL tenant/user lookups over requests.

Given a patched `requests.post`, the client must map absent entities to None
and transport/HTTP/GraphQL failures to `DirectoryError` without retrying.
"""
from __future__ import annotations

import pytest
import requests

import backend.identity_access.directory as directory_mod
from backend.identity_access.directory import DirectoryClient, DirectoryError


class _Resp:
    def __init__(self, status: int, data):
        self.status_code = status
        self._data = data

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


def _patch_post(monkeypatch, response):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(directory_mod.requests, "post", fake_post)
    return calls


def test_get_tenant_maps_admin(monkeypatch):
    calls = _patch_post(monkeypatch, _Resp(200, {"data": {"tenant": {"id": "t1", "adminId": "u-admin"}}}))
    client = DirectoryClient("http://dir.test/graphql", token="svc-token", timeout=2)
    tenant = client.get_tenant("t1")
    assert tenant.id == "t1" and tenant.admin_id == "u-admin"
    assert calls[0]["json"]["variables"] == {"tenantId": "t1"}
    assert calls[0]["headers"]["Authorization"] == "Bearer svc-token"
    assert calls[0]["timeout"] == 2


def test_get_tenant_absent_is_none(monkeypatch):
    _patch_post(monkeypatch, _Resp(200, {"data": {"tenant": None}}))
    assert DirectoryClient("http://dir.test/graphql").get_tenant("nope") is None


def test_get_user_collects_tenants(monkeypatch):
    body = {"data": {"user": {"id": "u1", "superAdmin": False, "tenants": [{"id": "t1"}, {"id": "t2"}]}}}
    _patch_post(monkeypatch, _Resp(200, body))
    user = DirectoryClient("http://dir.test/graphql").get_user("u1")
    assert user.is_member_of("t1") and user.is_member_of("t2")
    assert not user.is_member_of("t3")
    assert user.is_super_admin is False


def test_transport_error(monkeypatch):
    _patch_post(monkeypatch, requests.ConnectionError("down"))
    with pytest.raises(DirectoryError) as ei:
        DirectoryClient("http://dir.test/graphql").get_user("u1")
    assert ei.value.code == "directory_unreachable"
    assert ei.value.payload == {"type": "ConnectionError"}


def test_http_error(monkeypatch):
    _patch_post(monkeypatch, _Resp(503, {}))
    with pytest.raises(DirectoryError) as ei:
        DirectoryClient("http://dir.test/graphql").get_tenant("t1")
    assert ei.value.code == "directory_http_error"


def test_invalid_json(monkeypatch):
    _patch_post(monkeypatch, _Resp(200, ValueError("no json")))
    with pytest.raises(DirectoryError) as ei:
        DirectoryClient("http://dir.test/graphql").get_tenant("t1")
    assert ei.value.code == "directory_invalid_response"


def test_graphql_errors_without_data(monkeypatch):
    _patch_post(monkeypatch, _Resp(200, {"errors": [{"message": "boom"}]}))
    with pytest.raises(DirectoryError) as ei:
        DirectoryClient("http://dir.test/graphql").get_user("u1")
    assert ei.value.code == "directory_query_failed"
    assert ei.value.payload == {"errors": [{"message": "boom"}]}


def test_defaults_from_env(monkeypatch):
    monkeypatch.setenv("DIRECTORY_URL", "https://users.example/graphql/")
    monkeypatch.setenv("DIRECTORY_TIMEOUT_SECONDS", "3.5")
    client = DirectoryClient()
    assert client.base_url == "https://users.example/graphql"
    assert client.timeout == 3.5
    assert "Authorization" not in client.hdr()
