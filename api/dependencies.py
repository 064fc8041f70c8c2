"""FastAPI dependencies for dependency injection."""

from typing import Callable, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.exceptions import AuthenticationError, AuthorizationError
from core.middleware.authorization import Permission, check_permission
from core.security import decode_access_token
from core.storage.local import DocumentStorage
from database.engine import get_db
from database.models.users import User


# auto_error=False so a missing header becomes our 401 envelope, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


def get_storage(request: Request) -> DocumentStorage:
    """Document storage created in the application lifespan."""
    return request.app.state.storage


def get_client_ip(request: Request) -> Optional[str]:
    """Originating client address for the audit log."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Resolve the staff user from the bearer access token.

    Raises:
        AuthenticationError: Missing, invalid or expired token, or unknown user
        AuthorizationError: Account deactivated
    """
    if credentials is None:
        raise AuthenticationError("Authentication required")

    payload = decode_access_token(credentials.credentials, settings)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token")

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthorizationError("Inactive user account")

    return user


def require_permission(*required_permissions: Permission) -> Callable:
    """
    Dependency to require specific permissions.

    Args:
        required_permissions: Every permission the caller must hold

    Returns:
        FastAPI dependency resolving to the current user
    """

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        for permission in required_permissions:
            check_permission(current_user, permission)
        return current_user

    return dependency
