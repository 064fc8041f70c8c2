"""Pipeline statistics schemas."""

from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.users import UserSummary
from database.models.jobs import JobStatus


class PipelineStatsResponse(BaseModel):
    """Counts over a set of applications."""

    total: int = 0
    unprocessed: int = 0
    processed: int = 0
    hired: int = 0
    rejected: int = 0
    stage_counts: dict[str, int] = Field(
        default_factory=dict, description="Count per stage; stages with no applications are omitted"
    )

    class Config:
        from_attributes = True


class ConversionRatesResponse(BaseModel):
    """Funnel ratios between 0 and 1. null means there was nothing to divide by."""

    interview_rate: Optional[float] = None
    submission_rate: Optional[float] = None
    offer_rate: Optional[float] = None
    hire_rate: Optional[float] = None

    class Config:
        from_attributes = True


class OverviewResponse(BaseModel):
    total_jobs: int
    open_jobs: int
    on_hold_jobs: int
    closed_jobs: int
    total_candidates: int
    total_applications: int
    this_month: int = Field(description="Applications since the first instant of the current UTC month")
    stats: PipelineStatsResponse
    conversion_rates: ConversionRatesResponse


class AnalyticsJobRef(BaseModel):
    id: int
    title: str
    status: JobStatus

    class Config:
        from_attributes = True


class JobAnalyticsResponse(BaseModel):
    job: AnalyticsJobRef
    stats: PipelineStatsResponse
    conversion_rates: ConversionRatesResponse
    visa_counts: dict[str, int]
    location_counts: dict[str, int]


class RecruiterAnalyticsResponse(BaseModel):
    recruiter: UserSummary
    stats: PipelineStatsResponse
    conversion_rates: ConversionRatesResponse
