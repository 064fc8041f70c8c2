"""Staff job endpoints."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_client_ip, get_storage, require_permission
from api.schemas.analytics import PipelineStatsResponse
from api.schemas.applications import ApplicationListItem
from api.schemas.common import MessageResponse
from api.schemas.jobs import JobCreate, JobListItem, JobResponse, JobStatusUpdate, JobUpdate
from api.services import jobs as job_service
from api.services.pipeline import parse_stage
from core.middleware.authorization import Permission
from core.storage.local import DocumentStorage
from database.engine import get_db
from database.models.jobs import JobStatus
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ats/jobs", tags=["jobs"])


class JobDetailResponse(BaseModel):
    job: JobResponse
    stats: PipelineStatsResponse
    applications: list[ApplicationListItem]


@router.get("", response_model=list[JobListItem])
async def list_jobs(
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    recruiter_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.JOB_READ)),
):
    """All jobs with per-job pipeline counts."""
    return await job_service.list_jobs(
        db, status=status_filter, recruiter_id=recruiter_id, search=search
    )


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    body: JobCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.JOB_CREATE)),
):
    job = await job_service.create_job(
        db, body.model_dump(), performed_by=current_user.id, ip_address=get_client_ip(request)
    )
    return JobResponse.model_validate(job)


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job(
    job_id: int,
    tab: str = Query("all", description="all, unprocessed or processed"),
    stage: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.JOB_READ)),
):
    """Job with stats and its applications, filtered by tab and stage."""
    return await job_service.get_job_detail(
        db, job_id, tab=tab, stage=parse_stage(stage) if stage else None
    )


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    body: JobUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.JOB_UPDATE)),
):
    """Partial update: fields left out of the body are unchanged."""
    job = await job_service.update_job(
        db,
        job_id,
        body.model_dump(exclude_unset=True),
        performed_by=current_user.id,
        ip_address=get_client_ip(request),
    )
    return JobResponse.model_validate(job)


@router.patch("/{job_id}/status", response_model=JobResponse)
async def set_job_status(
    job_id: int,
    body: JobStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.JOB_UPDATE)),
):
    job = await job_service.set_job_status(
        db, job_id, body.status, performed_by=current_user.id, ip_address=get_client_ip(request)
    )
    return JobResponse.model_validate(job)


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(
    job_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_storage),
    current_user: User = Depends(require_permission(Permission.JOB_DELETE)),
):
    """Delete a job with its applications, notes and documents. Admin only."""
    await job_service.delete_job(
        db, storage, job_id, performed_by=current_user.id, ip_address=get_client_ip(request)
    )
    return MessageResponse(message="Job deleted")
