"""Pipeline analytics endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_permission
from api.schemas.analytics import (
    JobAnalyticsResponse,
    OverviewResponse,
    RecruiterAnalyticsResponse,
)
from api.services import analytics as analytics_service
from core.middleware.authorization import Permission
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/ats/analytics", tags=["analytics"])


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ANALYTICS_VIEW)),
):
    """Dashboard totals, stage counts and conversion rates across all jobs."""
    return OverviewResponse.model_validate(
        await analytics_service.overview(db), from_attributes=True
    )


@router.get("/jobs/{job_id}", response_model=JobAnalyticsResponse)
async def get_job_analytics(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ANALYTICS_VIEW)),
):
    return JobAnalyticsResponse.model_validate(
        await analytics_service.job_breakdown(db, job_id), from_attributes=True
    )


@router.get("/recruiters/{recruiter_id}", response_model=RecruiterAnalyticsResponse)
async def get_recruiter_analytics(
    recruiter_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.ANALYTICS_VIEW)),
):
    return RecruiterAnalyticsResponse.model_validate(
        await analytics_service.recruiter_breakdown(db, recruiter_id), from_attributes=True
    )
