"""
Authentication endpoints for staff login.

Access tokens are returned in the body and sent back as bearer credentials.
The refresh token lives only in an httpOnly cookie scoped to these routes and
is rotated on every refresh.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Cookie, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user, get_settings
from api.schemas.auth import LoginRequest, TokenResponse
from api.schemas.common import MessageResponse
from api.schemas.users import UserResponse
from api.services import users as user_service
from core.config import Settings
from core.exceptions import AuthenticationError
from core.security import create_access_token, create_refresh_token, decode_refresh_token
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

REFRESH_COOKIE_NAME = "refresh_token"


def _cookie_path(settings: Settings) -> str:
    return f"{settings.api_v1_prefix}/auth"


def _issue_tokens(user: User, response: Response, settings: Settings) -> TokenResponse:
    access_token = create_access_token(user.id, user.email, user.role.value, settings)
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=create_refresh_token(user.id, settings),
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite="strict",
        path=_cookie_path(settings),
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )
    return TokenResponse(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Exchange email and password for an access token and a refresh cookie."""
    user = await user_service.authenticate(db, body.email, body.password)
    return _issue_tokens(user, response, settings)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    response: Response,
    refresh_token: Optional[str] = Cookie(None),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Issue a new access token from the refresh cookie and rotate the cookie."""
    if not refresh_token:
        raise AuthenticationError("No refresh token")

    payload = decode_refresh_token(refresh_token, settings)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid refresh token")

    user = await user_service.get_active_user(db, user_id)
    return _issue_tokens(user, response, settings)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    """Clear the refresh cookie."""
    response.delete_cookie(
        REFRESH_COOKIE_NAME,
        path=_cookie_path(settings),
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite="strict",
    )
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """The authenticated user."""
    return UserResponse.model_validate(current_user)
