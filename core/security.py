"""
Password hashing and JWT token handling.

Access tokens are short-lived and travel as bearer credentials; refresh
tokens are signed with a separate secret and only ever set as an httpOnly
cookie by the auth routes.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from core.config import Settings
from core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Malformed password hash encountered")
        return False


def _encode(claims: Dict[str, Any], secret: str, algorithm: str, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, secret, algorithm=algorithm)


def create_access_token(user_id: int, email: str, role: str, settings: Settings) -> str:
    """
    Create a short-lived access token.

    Args:
        user_id: Staff user ID
        email: User email
        role: User role value
        settings: Application settings (secret, algorithm, lifetime)

    Returns:
        Encoded JWT
    """
    return _encode(
        {"sub": str(user_id), "email": email, "role": role, "type": ACCESS_TOKEN_TYPE},
        settings.jwt_secret_key,
        settings.jwt_algorithm,
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user_id: int, settings: Settings) -> str:
    """Create a long-lived refresh token signed with the refresh secret."""
    return _encode(
        {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
        settings.jwt_refresh_secret_key,
        settings.jwt_algorithm,
        timedelta(days=settings.refresh_token_expire_days),
    )


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    if payload.get("type") != expected_type or "sub" not in payload:
        raise AuthenticationError("Invalid token")
    return payload


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    """
    Verify an access token and return its claims.

    Raises:
        AuthenticationError: If the token is expired, tampered with or of the wrong type
    """
    return _decode(token, settings.jwt_secret_key, settings.jwt_algorithm, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Verify a refresh token and return its claims."""
    return _decode(
        token, settings.jwt_refresh_secret_key, settings.jwt_algorithm, REFRESH_TOKEN_TYPE
    )
