"""
Core middleware package.

This package provides the cross-cutting pieces wired into the application:
- Error handling with sensitive data sanitization
- Structured logging with PII masking
- Role-based authorization
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
    mask_sensitive_data,
)

from core.middleware.authorization import (
    Permission,
    ROLE_PERMISSIONS,
    RECRUITER_ROLES,
    check_permission,
    check_document_delete,
    get_user_permissions,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    "mask_sensitive_data",
    # Authorization
    "Permission",
    "ROLE_PERMISSIONS",
    "RECRUITER_ROLES",
    "check_permission",
    "check_document_delete",
    "get_user_permissions",
]
