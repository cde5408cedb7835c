"""Error taxonomy for classroom use cases.

Every error carries an HTTP status, a stable machine `code`, an optional
`detail` token and a short human-readable `message`. The web layer turns them
into JSON with a single exception handler; use cases never build responses.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ClassroomServiceError(Exception):
    """Base class for all classroom service errors."""

    status_code = 500
    code = "internal_error"
    default_message = "Internal error"

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            body["detail"] = self.detail
        return body


class Unauthenticated(ClassroomServiceError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Unauthorized"


class Forbidden(ClassroomServiceError):
    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class NotFound(ClassroomServiceError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class TenantNotFound(NotFound):
    default_message = "Tenant not found"

    def __init__(self, message: str | None = None):
        super().__init__(message, detail="tenant_not_found")


class ClassroomNotFound(NotFound):
    default_message = "Classroom not found"

    def __init__(self, message: str | None = None):
        super().__init__(message, detail="classroom_not_found")


class UserNotFound(NotFound):
    default_message = "User not found"

    def __init__(self, message: str | None = None):
        super().__init__(message, detail="user_not_found")


class ValidationError(ClassroomServiceError):
    status_code = 400
    code = "bad_request"
    default_message = "Invalid request"


class UpstreamError(ClassroomServiceError):
    """A collaborator (store, directory, scheduling service) failed.

    The upstream payload is echoed to the client for diagnostics.
    """

    status_code = 502
    code = "upstream_error"
    default_message = "Upstream service error"

    def __init__(self, message: str | None = None, *, upstream: Optional[Any] = None, detail: str | None = None):
        super().__init__(message, detail=detail)
        self.upstream = upstream

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.upstream is not None:
            body["upstream"] = self.upstream
        return body
