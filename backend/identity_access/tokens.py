"""
Access token helpers for the identity_access bounded context.

Why: Keep token extraction and validation outside the web adapter so we can
unit test it independently. Tokens are issued by the user service; this
module only verifies them.

Security: HS256 signature against `JWT_SECRET`, `exp` enforced when present.
The token travels as `Authorization: Bearer ...` or, for browsers, in the
`jwt` cookie (name configurable via `JWT_COOKIE_NAME`).
"""
from __future__ import annotations

import os
from typing import Dict, Mapping, Optional, Sequence

from jose import jwt
from jose.exceptions import JOSEError

from backend.identity_access.domain import Caller

DEFAULT_ALGORITHMS = ("HS256",)


class AccessTokenError(Exception):
    """Raised when the access token is missing or fails verification."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def cookie_name() -> str:
    return os.getenv("JWT_COOKIE_NAME", "jwt") or "jwt"


def extract_token(authorization: Optional[str], cookies: Mapping[str, str]) -> Optional[str]:
    """Return the bearer token, falling back to the token cookie."""
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    token = cookies.get(cookie_name())
    return token or None


def verify_access_token(
    token: str,
    *,
    secret: str | None = None,
    algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
) -> Caller:
    """Validate an access token and return the caller it identifies.

    Raises
    ------
    AccessTokenError:
        `secret_unconfigured` when no secret is available, `invalid_token`
        for signature/expiry/format failures, `missing_subject` when neither
        `id` nor `sub` is present.
    """
    key = secret if secret is not None else os.getenv("JWT_SECRET")
    if not key:
        raise AccessTokenError("secret_unconfigured")
    try:
        claims: Dict[str, object] = jwt.decode(
            token,
            key,
            algorithms=list(algorithms),
            options={"verify_aud": False},
        )
    except JOSEError as exc:
        raise AccessTokenError("invalid_token") from exc
    subject = claims.get("id") or claims.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise AccessTokenError("missing_subject")
    return Caller(id=subject.strip(), is_super_admin=claims.get("superAdmin") is True)


__all__ = ["AccessTokenError", "cookie_name", "extract_token", "verify_access_token"]
