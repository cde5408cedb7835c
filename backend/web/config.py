"""
Configuration and startup security checks for the classroom service.

Why: Classrooms hold student rosters. This module provides a single guard that
refuses obviously insecure production deployments without burdening local
development.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os

_PLACEHOLDER_SECRETS = {"changeme", "change_me", "secret", "dummy_do_not_use"}


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def _must_be_https(url_value: str, var_name: str) -> None:
    val = (url_value or "").strip().lower()
    if not val:
        raise SystemExit(f"Refusing to start: {var_name} must be set in production.")
    if val.startswith("http://"):
        raise SystemExit(f"Refusing to start: {var_name} must use https in production (got http).")
    if not val.startswith("https://"):
        raise SystemExit(f"Refusing to start: invalid {var_name} value in production.")


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Checks (prod-like envs only):
    - JWT_SECRET must be set and not a known placeholder.
    - DIRECTORY_URL and SCHEDULE_SERVICE_URL must be set and use https.
    - The Postgres DSN must not explicitly disable TLS.
    """

    env = os.getenv("CLASSROOM_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Token verification secret
    secret = (os.getenv("JWT_SECRET", "") or "").strip()
    if not secret or secret.lower() in _PLACEHOLDER_SECRETS:
        raise SystemExit("Refusing to start: JWT_SECRET is unset or a placeholder in production.")

    # 2) Collaborators must be reached over TLS
    _must_be_https(os.getenv("DIRECTORY_URL", ""), "DIRECTORY_URL")
    _must_be_https(os.getenv("SCHEDULE_SERVICE_URL", ""), "SCHEDULE_SERVICE_URL")

    # 3) Postgres TLS: basic guard to avoid explicit disable
    for key in ("CLASSROOM_DATABASE_URL", "DATABASE_URL"):
        if "sslmode=disable" in os.getenv(key, ""):
            raise SystemExit(
                f"Refusing to start: {key} contains sslmode=disable in production. Use sslmode=require or verify TLS."
            )
