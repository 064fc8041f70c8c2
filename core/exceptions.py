"""
Domain error taxonomy.

Services raise these; the error handlers in core.middleware.error_handling
turn them into structured JSON responses.
"""

from typing import Any, Optional


class ATSError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ATSError):
    """Raised when input is malformed or a required field is missing."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(ATSError):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(ATSError):
    """Raised on duplicate applications or duplicate emails."""

    status_code = 409
    code = "CONFLICT"


class AuthorizationError(ATSError):
    """Raised when a role or ownership check fails."""

    status_code = 403
    code = "FORBIDDEN"


class AuthenticationError(ATSError):
    """Raised when a credential is missing, invalid or expired."""

    status_code = 401
    code = "UNAUTHORIZED"
