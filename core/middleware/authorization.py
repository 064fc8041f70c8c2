"""
Role-based access control for staff users.

Four fixed roles map onto a set of permissions. Route dependencies check
permissions, never roles directly, so the policy lives in one table.
"""

import logging
from enum import Enum
from typing import Optional, Set

from core.exceptions import AuthorizationError
from database.models.documents import Document
from database.models.users import Role, User

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """System-wide permissions."""

    # Jobs
    JOB_READ = "job:read"
    JOB_CREATE = "job:create"
    JOB_UPDATE = "job:update"
    JOB_DELETE = "job:delete"

    # Applications and the pipeline
    APPLICATION_READ = "application:read"
    APPLICATION_ADVANCE = "application:advance"  # stage, reject, assign, process
    NOTE_CREATE = "note:create"

    # Document vault
    DOCUMENT_READ = "document:read"
    DOCUMENT_UPLOAD = "document:upload"
    DOCUMENT_DELETE = "document:delete"

    # Reporting
    ANALYTICS_VIEW = "analytics:view"

    # Users
    USER_LIST_RECRUITERS = "user:list_recruiters"
    USER_MANAGE = "user:manage"


_READ_PERMISSIONS: Set[Permission] = {
    Permission.JOB_READ,
    Permission.APPLICATION_READ,
    Permission.NOTE_CREATE,
    Permission.DOCUMENT_READ,
    Permission.ANALYTICS_VIEW,
    Permission.USER_LIST_RECRUITERS,
}

_EDIT_PERMISSIONS: Set[Permission] = _READ_PERMISSIONS | {
    Permission.JOB_CREATE,
    Permission.JOB_UPDATE,
    Permission.APPLICATION_ADVANCE,
    Permission.DOCUMENT_UPLOAD,
}


# Role to permission mapping
ROLE_PERMISSIONS: dict[Role, Set[Permission]] = {
    Role.ADMIN: set(Permission),
    Role.RECRUITER: _EDIT_PERMISSIONS | {Permission.DOCUMENT_DELETE},
    Role.HIRING_MANAGER: set(_EDIT_PERMISSIONS),
    Role.VIEWER: set(_READ_PERMISSIONS),
}

# Roles that can be assigned to a job or an application
RECRUITER_ROLES = (Role.ADMIN, Role.RECRUITER, Role.HIRING_MANAGER)


def get_user_permissions(user: User) -> Set[Permission]:
    """
    Get all permissions a user has through their role.

    Inactive users have none.
    """
    if not user.is_active:
        return set()
    return ROLE_PERMISSIONS.get(user.role, set())


def has_permission(user: User, permission: Permission) -> bool:
    return permission in get_user_permissions(user)


def check_permission(user: User, required_permission: Permission) -> None:
    """
    Check if user has the required permission.

    Args:
        user: Authenticated staff user
        required_permission: Required permission

    Raises:
        AuthorizationError: If the user's role lacks the permission
    """
    if has_permission(user, required_permission):
        return

    logger.warning(
        f"User {user.id} with role {user.role.value} lacks permission {required_permission.value}"
    )
    raise AuthorizationError(f"User does not have permission: {required_permission.value}")


def check_document_delete(user: User, document: Document) -> None:
    """
    Capability check for deleting one document: the uploader or an admin.

    Documents submitted through the public form have no uploader, so only an
    admin can remove them.

    Raises:
        AuthorizationError: If the user may not delete this document
    """
    check_permission(user, Permission.DOCUMENT_DELETE)

    if user.role == Role.ADMIN:
        return
    uploader_id: Optional[int] = document.uploaded_by_id
    if uploader_id is not None and uploader_id == user.id:
        return

    logger.warning(f"User {user.id} denied delete on document {document.id}: not the uploader")
    raise AuthorizationError("Only the uploader or an admin can delete this document")
