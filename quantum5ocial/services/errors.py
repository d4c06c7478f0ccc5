"""Domain errors raised by services.

Each error carries a stable `code` and the HTTP status the API maps it to.
Routes do not catch these; the app-level handler in main.py renders them in the
standard `{"error": {"code", "message", "detail"}}` format.
"""

from typing import Any


class DomainError(RuntimeError):
    status_code = 400
    default_code = "BAD_REQUEST"

    def __init__(self, message: str, *, code: str | None = None, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail = detail


class ValidationFailedError(DomainError):
    status_code = 422
    default_code = "VALIDATION_FAILED"


class NotAuthenticatedError(DomainError):
    status_code = 401
    default_code = "NOT_AUTHENTICATED"


class ForbiddenError(DomainError):
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(DomainError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(DomainError):
    status_code = 409
    default_code = "CONFLICT"


class ServiceUnavailableError(DomainError):
    status_code = 503
    default_code = "SERVICE_UNAVAILABLE"
