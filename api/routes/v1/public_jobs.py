"""
Public job board endpoints. No authentication.

Only published, open jobs are visible, and only their public fields.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from api.dependencies import get_client_ip, get_settings, get_storage
from api.schemas.intake import ApplyResponse
from api.schemas.jobs import PublicJobDetail, PublicJobSummary
from api.services import intake as intake_service
from api.services import jobs as job_service
from core.config import Settings
from core.storage.local import DocumentStorage
from database.engine import get_db
from database.models.jobs import JobType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["job-board"])


@router.get("", response_model=list[PublicJobSummary])
async def list_jobs(
    location: Optional[str] = Query(None, description="City or state substring"),
    job_type: Optional[JobType] = Query(None),
    visa: Optional[str] = Query(None, description='"sponsored" to list only sponsoring jobs'),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List open, published jobs."""
    return await job_service.list_public_jobs(
        db, location=location, job_type=job_type, visa=visa, search=search
    )


@router.get("/{job_id}", response_model=PublicJobDetail)
async def get_job(job_id: int, db: AsyncSession = Depends(get_db)):
    """Public detail for one open, published job."""
    return await job_service.get_public_job(db, job_id)


@router.post(
    "/{job_id}/apply",
    response_model=ApplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to a job",
)
async def apply(
    job_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Submit an application as multipart/form-data.

    - **first_name**, **last_name**, **email**: required
    - **phone**, **location_city**, **location_state**, **linkedin_url**, **visa_status**,
      **current_employer**, **experience_years**, **salary_expectation**, **skills**: optional
    - **resume**, **passport**, **visa**, **ead**: optional files (PDF, DOC, DOCX, JPG, PNG);
      files under any other field name are stored as "other"
    """
    async with request.form() as form:
        fields: dict[str, str] = {}
        files: list[tuple[str, UploadFile]] = []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                files.append((key, value))
            else:
                fields[key] = value

        application = await intake_service.submit_application(
            db,
            storage,
            job_id,
            fields,
            files,
            ip_address=get_client_ip(request),
            max_files=settings.max_upload_files,
        )

    return ApplyResponse(application_id=application.id)
