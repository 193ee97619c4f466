"""
core/errors.py -- Application error taxonomy.

Every failure the service reports to a client is one of these classes. Each
carries a machine-readable code, a client-safe message, and the HTTP status
it maps to. api/main.py registers a single exception handler for AppError
that renders the standard {"error": {...}} envelope, so flows and
dependencies raise these directly and never build responses themselves.

InternalError messages are always generic. The real cause goes to the server
log, never to the response body.

Layer rule: core/ is the kernel. No imports from api/, auth/, or audit/.
"""

from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base application error."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed input (empty credentials, bad query parameters)."""

    status_code = 400
    code = "validation_error"
    message = "Request validation failed."


class UnauthorizedError(AppError):
    """Missing, malformed, expired or otherwise invalid credentials."""

    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class InvalidCredentialsError(UnauthorizedError):
    """Login failed. Raised identically for unknown user and wrong password."""

    code = "bad_credentials"
    message = "Invalid credentials."


class ForbiddenError(AppError):
    """Valid identity, insufficient role."""

    status_code = 403
    code = "forbidden"
    message = "Insufficient permissions."


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    message = "Resource not found."


class ConflictError(AppError):
    """A uniqueness invariant (username, email) would be violated."""

    status_code = 409
    code = "conflict"
    message = "Resource already exists."


class InternalError(AppError):
    pass
