"""
Staff account endpoints.

Account management is admin only. The recruiter directory feeds the
assignment dropdowns and is open to every staff role that can assign.
"""

import logging
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_client_ip, require_permission
from api.schemas.users import UserCreate, UserResponse, UserSummary, UserUpdate
from api.services import users as user_service
from core.middleware.authorization import Permission
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ats/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_MANAGE)),
):
    users = await user_service.list_users(db)
    return [UserResponse.model_validate(user) for user in users]


@router.get("/recruiters", response_model=list[UserSummary])
async def list_recruiters(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_LIST_RECRUITERS)),
):
    """Active users who can be assigned to jobs and applications."""
    recruiters = await user_service.list_recruiters(db)
    return [UserSummary.model_validate(user) for user in recruiters]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_MANAGE)),
):
    user = await user_service.create_user(
        db,
        email=body.email,
        full_name=body.full_name,
        password=body.password,
        role=body.role,
        performed_by=current_user.id,
        ip_address=get_client_ip(request),
    )
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    body: UserUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_MANAGE)),
):
    """Change a user's name, role or active flag. Admins cannot deactivate themselves."""
    user = await user_service.update_user(
        db,
        user_id,
        current_user,
        full_name=body.full_name,
        role=body.role,
        is_active=body.is_active,
        ip_address=get_client_ip(request),
    )
    return UserResponse.model_validate(user)
