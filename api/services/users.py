"""
Staff user service: login, account management and the recruiter directory.
"""

from typing import List, Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.audit import write_audit_log
from core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from core.middleware.authorization import RECRUITER_ROLES
from core.security import hash_password, verify_password
from core.utils.datetime import now
from core.utils.validators import normalize_email
from database.models.audit import AuditAction, EntityType
from database.models.users import Role, User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials and record the login time.

    Unknown email, wrong password and deactivated accounts all fail the same way.

    Raises:
        AuthenticationError: Credentials rejected
    """
    user = await get_user_by_email(session, email)
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Login rejected")
        raise AuthenticationError(INVALID_CREDENTIALS)

    user.last_login_at = now()
    await session.commit()
    logger.info(f"User {user.id} logged in")
    return user


async def get_active_user(session: AsyncSession, user_id: int) -> User:
    """
    Raises:
        AuthenticationError: User missing or deactivated
    """
    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("User not found or inactive")
    return user


async def list_users(session: AsyncSession) -> List[User]:
    result = await session.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def list_recruiters(session: AsyncSession) -> List[User]:
    """Active users who can own jobs and applications, by name."""
    result = await session.execute(
        select(User)
        .where(User.role.in_(RECRUITER_ROLES), User.is_active.is_(True))
        .order_by(User.full_name.asc())
    )
    return list(result.scalars().all())


async def create_user(
    session: AsyncSession,
    email: str,
    full_name: str,
    password: str,
    role: Role,
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> User:
    """
    Raises:
        ConflictError: Email already in use
    """
    email = normalize_email(email)
    if await get_user_by_email(session, email) is not None:
        raise ConflictError("Email already in use")

    user = User(
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    session.add(user)
    await session.flush()

    write_audit_log(
        session,
        EntityType.USER,
        user.id,
        AuditAction.CREATED,
        new_value={"email": user.email, "role": user.role.value},
        performed_by_id=performed_by,
        ip_address=ip_address,
    )
    await session.commit()
    logger.info(f"User {user.id} created with role {user.role.value}")
    return user


async def update_user(
    session: AsyncSession,
    user_id: int,
    acting_user: User,
    full_name: Optional[str] = None,
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    ip_address: Optional[str] = None,
) -> User:
    """
    Update name, role or active flag.

    Raises:
        NotFoundError: User does not exist
        ValidationError: An admin tried to deactivate their own account
    """
    if user_id == acting_user.id and is_active is False:
        raise ValidationError("Cannot deactivate your own account", details={"field": "is_active"})

    user = await get_user(session, user_id)

    old_value = {"full_name": user.full_name, "role": user.role.value, "is_active": user.is_active}
    if full_name is not None and full_name.strip():
        user.full_name = full_name.strip()
    if role is not None:
        user.role = role
    if is_active is not None:
        user.is_active = is_active
    new_value = {"full_name": user.full_name, "role": user.role.value, "is_active": user.is_active}

    write_audit_log(
        session,
        EntityType.USER,
        user.id,
        AuditAction.UPDATED,
        old_value=old_value,
        new_value=new_value,
        performed_by_id=acting_user.id,
        ip_address=ip_address,
    )
    await session.commit()
    return user


async def ensure_bootstrap_admin(
    session: AsyncSession, email: Optional[str], password: Optional[str]
) -> Optional[User]:
    """
    Create the first admin when the users table is empty.

    Returns:
        The new admin, or None when not configured or users already exist
    """
    if not email or not password:
        return None

    user_count = await session.scalar(select(func.count(User.id)))
    if user_count:
        return None

    user = User(
        email=email.strip().lower(),
        full_name="Administrator",
        password_hash=hash_password(password),
        role=Role.ADMIN,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    logger.info(f"Bootstrap admin {user.id} created")
    return user
