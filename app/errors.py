"""Error taxonomy shared by every service and router.

Each error carries a machine-readable ``code`` and a ``category`` that tells
the caller what to do next: fix the input, retry, or give up because the
resource is gone. The handlers registered in app.main turn these into the
JSON envelope ``{"error": {...}, "request_id": ...}``.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that are safe to surface to API callers."""

    status_code = 500
    category = "internal"
    default_code = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ClientInputError(AppError):
    """Missing or invalid request data. Nothing was mutated."""

    status_code = 400
    category = "fix_input"
    default_code = "BAD_REQUEST"


class NotFoundError(AppError):
    status_code = 404
    category = "resource_gone"
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            f"{resource} with ID {resource_id} not found",
            code=f"{resource.upper()}_NOT_FOUND",
            details={"id": resource_id},
        )
        self.resource = resource


class ConflictError(AppError):
    """A conditional write lost: load already booked, negotiation already moved on."""

    status_code = 409
    category = "retry_with_fresh_state"
    default_code = "CONFLICT"


class ServiceUnavailableError(AppError):
    """A collaborator (database, text generation, email) failed or timed out."""

    status_code = 503
    category = "try_again"
    default_code = "SERVICE_UNAVAILABLE"

    def __init__(self, service: str, details: Optional[dict[str, Any]] = None):
        super().__init__(f"{service} is temporarily unavailable", details=details)
        self.service = service
