"""
Application endpoints: the staff pipeline list, the candidate profile and
the stage operations.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_client_ip, get_settings, require_permission
from api.schemas.applications import (
    ApplicationDetailResponse,
    ApplicationListItem,
    ApplicationStateResponse,
    AssignRequest,
    RejectRequest,
    StageChangeRequest,
)
from api.schemas.common import PaginatedResponse, PaginationParams
from api.services import applications as application_service
from api.services import pipeline
from core.config import Settings
from core.middleware.authorization import Permission
from database.engine import get_db
from database.models.candidates import VisaStatus
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ats/applications", tags=["applications"])


@router.get("", response_model=PaginatedResponse[ApplicationListItem])
async def list_applications(
    stage: Optional[str] = Query(None),
    recruiter_id: Optional[int] = Query(None),
    visa_status: Optional[VisaStatus] = Query(None),
    job_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Candidate name, email or employer"),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.APPLICATION_READ)),
):
    """Paginated, filterable application list, newest first."""
    rows, total = await application_service.list_applications(
        db,
        stage=pipeline.parse_stage(stage) if stage else None,
        recruiter_id=recruiter_id,
        visa_status=visa_status,
        job_id=job_id,
        search=search,
        limit=pagination.page_size,
        offset=pagination.offset,
    )
    items = [ApplicationListItem.model_validate(row) for row in rows]
    return PaginatedResponse.create(items, total, pagination)


@router.get("/{application_id}", response_model=ApplicationDetailResponse)
async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.APPLICATION_READ)),
):
    """Candidate profile: application, notes, documents and recent audit entries."""
    return await application_service.get_application_detail(db, application_id)


@router.patch("/{application_id}/stage", response_model=ApplicationStateResponse)
async def change_stage(
    application_id: int,
    body: StageChangeRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(require_permission(Permission.APPLICATION_ADVANCE)),
):
    """
    Move an application to another stage.

    - **stage**: target stage
    - **note_content**: required note, recorded against the stage being left
    - **rejection_reason**: stored when the target is rejected
    """
    application = await pipeline.change_stage(
        db,
        application_id,
        body.stage,
        body.note_content,
        rejection_reason=body.rejection_reason,
        performed_by=current_user.id,
        ip_address=get_client_ip(request),
        clear_rejection_reason=settings.clear_rejection_reason_on_reopen,
    )
    return ApplicationStateResponse.model_validate(application)


@router.patch("/{application_id}/reject", response_model=ApplicationStateResponse)
async def reject_application(
    application_id: int,
    body: RejectRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.APPLICATION_ADVANCE)),
):
    application = await pipeline.reject(
        db,
        application_id,
        body.rejection_reason,
        body.note_content,
        performed_by=current_user.id,
        ip_address=get_client_ip(request),
    )
    return ApplicationStateResponse.model_validate(application)


@router.patch("/{application_id}/assign", response_model=ApplicationStateResponse)
async def assign_application(
    application_id: int,
    body: AssignRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.APPLICATION_ADVANCE)),
):
    application = await pipeline.assign_recruiter(
        db,
        application_id,
        body.recruiter_id,
        performed_by=current_user.id,
        ip_address=get_client_ip(request),
    )
    return ApplicationStateResponse.model_validate(application)


@router.patch("/{application_id}/process", response_model=ApplicationStateResponse)
async def process_application(
    application_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.APPLICATION_ADVANCE)),
):
    """Mark as processed without a stage move."""
    application = await pipeline.mark_processed(
        db, application_id, performed_by=current_user.id, ip_address=get_client_ip(request)
    )
    return ApplicationStateResponse.model_validate(application)
