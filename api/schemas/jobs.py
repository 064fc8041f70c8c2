"""Job schemas: staff-facing requisitions and the public job board."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from api.schemas.analytics import PipelineStatsResponse
from api.schemas.common import TimestampMixin
from api.schemas.users import UserSummary
from database.models.jobs import JobStatus, JobType


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


class JobFields(BaseModel):
    """Every editable job field, all optional. Base for create and update."""

    title: Optional[str] = Field(None, min_length=1, max_length=255, description="Internal title")
    department: Optional[str] = Field(None, max_length=150)
    location_city: Optional[str] = Field(None, max_length=120)
    location_state: Optional[str] = Field(None, max_length=60)
    is_remote: Optional[bool] = None
    job_type: Optional[JobType] = None
    visa_sponsorship: Optional[bool] = None
    internal_notes: Optional[str] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    show_salary: Optional[bool] = None
    public_title: Optional[str] = Field(None, max_length=255)
    public_description: Optional[str] = Field(None, min_length=1)
    prerequisites: Optional[str] = None
    responsibilities: Optional[str] = None
    is_published: Optional[bool] = None
    status: Optional[JobStatus] = None
    assigned_recruiter_id: Optional[int] = None

    @field_validator("title", "public_title", "public_description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @model_validator(mode="after")
    def check_salary_range(self):
        if (
            self.salary_min is not None
            and self.salary_max is not None
            and self.salary_min > self.salary_max
        ):
            raise ValueError("salary_min cannot exceed salary_max")
        return self


class JobCreate(JobFields):
    """Schema for creating a job."""

    title: str = Field(..., min_length=1, max_length=255, description="Internal title")
    public_description: str = Field(..., min_length=1)
    is_remote: bool = False
    job_type: JobType = JobType.FULL_TIME
    visa_sponsorship: bool = True
    show_salary: bool = False
    is_published: bool = False
    status: JobStatus = JobStatus.OPEN


class JobUpdate(JobFields):
    """Partial update; only fields present in the body change."""


class JobStatusUpdate(BaseModel):
    status: JobStatus


class JobResponse(TimestampMixin):
    """Full staff view of a job."""

    id: int
    title: str
    public_title: Optional[str] = None
    department: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    is_remote: bool
    job_type: JobType
    visa_sponsorship: bool
    internal_notes: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    show_salary: bool
    public_description: str
    prerequisites: Optional[str] = None
    responsibilities: Optional[str] = None
    is_published: bool
    status: JobStatus
    closed_at: Optional[datetime] = None
    assigned_recruiter_id: Optional[int] = None
    created_by_id: Optional[int] = None
    assigned_recruiter: Optional[UserSummary] = None
    created_by: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class JobListItem(TimestampMixin):
    """Row in the staff job list, with pipeline counts."""

    id: int
    title: str
    public_title: Optional[str] = None
    department: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    is_remote: bool
    job_type: JobType
    visa_sponsorship: bool
    status: JobStatus
    is_published: bool
    closed_at: Optional[datetime] = None
    assigned_recruiter: Optional[UserSummary] = None
    created_by: Optional[UserSummary] = None
    stats: PipelineStatsResponse


# ==================== Public Job Board ==================== #
class SalaryRange(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None


class PublicJobSummary(BaseModel):
    """Job board card. Internal fields are never included."""

    id: int
    title: str
    department: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    is_remote: bool
    job_type: JobType
    visa_sponsorship: bool
    salary: Optional[SalaryRange] = Field(None, description="null unless the job shows its salary")
    created_at: datetime


class PublicJobDetail(PublicJobSummary):
    description: str
    prerequisites: Optional[str] = None
    responsibilities: Optional[str] = None
