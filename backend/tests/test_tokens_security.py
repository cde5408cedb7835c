"""Access token extraction and verification."""
from __future__ import annotations

import time

import pytest
from jose import jwt

from backend.identity_access.tokens import AccessTokenError, extract_token, verify_access_token


def _token(claims, secret="s3cret", algorithm="HS256"):
    return jwt.encode(claims, secret, algorithm=algorithm)


def test_extract_prefers_bearer_then_cookie(monkeypatch):
    assert extract_token("Bearer abc", {"jwt": "cookie"}) == "abc"
    assert extract_token(None, {"jwt": "cookie"}) == "cookie"
    assert extract_token("Basic xyz", {}) is None
    monkeypatch.setenv("JWT_COOKIE_NAME", "session")
    assert extract_token(None, {"session": "s", "jwt": "j"}) == "s"


def test_verify_reads_id_and_super_admin():
    caller = verify_access_token(_token({"id": "u1", "superAdmin": True}), secret="s3cret")
    assert caller.id == "u1" and caller.is_super_admin


def test_verify_falls_back_to_sub():
    caller = verify_access_token(_token({"sub": "u2"}), secret="s3cret")
    assert caller.id == "u2" and not caller.is_super_admin


def test_truthy_non_bool_super_admin_is_ignored():
    caller = verify_access_token(_token({"id": "u3", "superAdmin": "yes"}), secret="s3cret")
    assert caller.is_super_admin is False


@pytest.mark.parametrize(
    "token",
    [
        _token({"id": "u1"}, secret="other"),
        _token({"id": "u1", "exp": int(time.time()) - 10}),
        "not-a-jwt",
    ],
)
def test_invalid_tokens(token):
    with pytest.raises(AccessTokenError) as ei:
        verify_access_token(token, secret="s3cret")
    assert ei.value.code == "invalid_token"


def test_missing_subject():
    with pytest.raises(AccessTokenError) as ei:
        verify_access_token(_token({"name": "x"}), secret="s3cret")
    assert ei.value.code == "missing_subject"


def test_secret_required(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(AccessTokenError) as ei:
        verify_access_token(_token({"id": "u1"}))
    assert ei.value.code == "secret_unconfigured"
