"""
Directory adapter for tenant and user lookup (GraphQL user service).

Why:
    Authorization needs two facts owned by the user service: who administers
    a tenant, and which tenants a user belongs to. This adapter wraps the two
    GraphQL queries behind small methods returning immutable DTOs.

Behavior:
    - `None` means the directory answered and the entity does not exist.
    - `DirectoryError` means the directory could not answer (transport,
      HTTP status, malformed body, GraphQL errors without data). Callers decide
      whether that is fatal; nothing here retries.

Security:
    - Optional service bearer token from `DIRECTORY_TOKEN`.
    - Do not log tokens or full identifiers.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Protocol

import requests

from backend.logging_utils import id_tail
from backend.identity_access.domain import DirectoryUser, Tenant

logger = logging.getLogger("classroom_service.identity_access.directory")

GET_TENANT_QUERY = """
query GetTenant($tenantId: ID!) {
  tenant(id: $tenantId) {
    id
    adminId
  }
}
"""

GET_USER_QUERY = """
query GetUser($id: ID!) {
  user(id: $id) {
    id
    superAdmin
    tenants {
      id
    }
  }
}
"""


class DirectoryError(Exception):
    """Raised when the directory cannot answer a lookup."""

    def __init__(self, code: str, payload: Any = None):
        super().__init__(code)
        self.code = code
        self.payload = payload if payload is not None else {"code": code}


class DirectoryProtocol(Protocol):
    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        ...

    def get_user(self, user_id: str) -> Optional[DirectoryUser]:
        ...


class DirectoryClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("DIRECTORY_URL", "http://localhost:4000/graphql")).rstrip("/")
        self.token = token if token is not None else os.getenv("DIRECTORY_TOKEN")
        self.timeout = timeout if timeout is not None else float(os.getenv("DIRECTORY_TIMEOUT_SECONDS", "10"))

    def hdr(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = requests.post(
                self.base_url,
                json={"query": query, "variables": variables},
                headers=self.hdr(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DirectoryError("directory_unreachable", {"type": exc.__class__.__name__}) from exc
        if r.status_code >= 400:
            raise DirectoryError("directory_http_error", {"status": r.status_code})
        try:
            body = r.json() or {}
        except ValueError as exc:
            raise DirectoryError("directory_invalid_response") from exc
        if not isinstance(body, dict):
            raise DirectoryError("directory_invalid_response")
        data = body.get("data")
        errors = body.get("errors")
        if errors and not data:
            raise DirectoryError("directory_query_failed", {"errors": errors})
        return data or {}

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        """Return the tenant or None when the directory does not know it."""
        data = self._query(GET_TENANT_QUERY, {"tenantId": tenant_id})
        raw = data.get("tenant")
        if not isinstance(raw, dict) or not raw.get("id"):
            logger.debug("tenant not found: tenant_tail=%s", id_tail(tenant_id))
            return None
        admin_id = raw.get("adminId")
        return Tenant(id=str(raw["id"]), admin_id=str(admin_id) if admin_id else None)

    def get_user(self, user_id: str) -> Optional[DirectoryUser]:
        """Return the user with tenant memberships or None when unknown."""
        data = self._query(GET_USER_QUERY, {"id": user_id})
        raw = data.get("user")
        if not isinstance(raw, dict) or not raw.get("id"):
            logger.debug("user not found: user_tail=%s", id_tail(user_id))
            return None
        tenants = raw.get("tenants") or []
        tenant_ids = frozenset(
            str(t["id"]) for t in tenants if isinstance(t, dict) and t.get("id")
        )
        return DirectoryUser(
            id=str(raw["id"]),
            tenant_ids=tenant_ids,
            is_super_admin=bool(raw.get("superAdmin")),
        )


__all__ = ["DirectoryClient", "DirectoryError", "DirectoryProtocol", "GET_TENANT_QUERY", "GET_USER_QUERY"]
