"""Application and pipeline schemas."""

from datetime import date, datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from api.schemas.documents import DocumentResponse
from api.schemas.notes import NoteResponse
from api.schemas.users import UserSummary
from database.models.applications import Stage
from database.models.candidates import CandidateSource, VisaStatus
from database.models.jobs import JobStatus


# ==================== Pipeline Requests ==================== #
class StageChangeRequest(BaseModel):
    """Move an application. The note is mandatory for every move."""

    stage: str = Field(..., description="Target stage value")
    note_content: Optional[str] = Field(None, description="Required, non-empty after trimming")
    rejection_reason: Optional[str] = Field(None, description="Stored only when stage is rejected")


class RejectRequest(BaseModel):
    rejection_reason: Optional[str] = None
    note_content: Optional[str] = None


class AssignRequest(BaseModel):
    recruiter_id: Optional[int] = Field(None, description="null unassigns")


class ApplicationStateResponse(BaseModel):
    """Application fields touched by pipeline operations."""

    id: int
    job_id: int
    candidate_id: int
    stage: Stage
    is_processed: bool
    rejection_reason: Optional[str] = None
    assigned_recruiter_id: Optional[int] = None
    applied_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ==================== Read Views ==================== #
class CandidateSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    visa_status: Optional[VisaStatus] = None
    current_employer: Optional[str] = None
    experience_years: Optional[int] = None
    skills: Optional[str] = None
    skill_list: list[str] = []

    class Config:
        from_attributes = True


class CandidateDetail(CandidateSummary):
    linkedin_url: Optional[str] = None
    visa_expiry_date: Optional[date] = None
    passport_country: Optional[str] = None
    salary_expectation: Optional[int] = None
    source: CandidateSource
    created_at: datetime


class ApplicationJobRef(BaseModel):
    id: int
    title: str
    public_title: Optional[str] = None
    status: JobStatus

    class Config:
        from_attributes = True


class ApplicationListItem(BaseModel):
    id: int
    stage: Stage
    is_processed: bool
    rejection_reason: Optional[str] = None
    applied_at: datetime
    updated_at: datetime
    candidate: CandidateSummary
    job: Optional[ApplicationJobRef] = None
    assigned_recruiter: Optional[UserSummary] = None
    note_count: int = 0
    document_count: int = 0


class AuditEntryResponse(BaseModel):
    id: int
    action: str
    old_value: Optional[dict[str, Any]] = None
    new_value: Optional[dict[str, Any]] = None
    performed_by: Optional[UserSummary] = None
    ip_address: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApplicationDetailResponse(BaseModel):
    id: int
    stage: Stage
    is_processed: bool
    rejection_reason: Optional[str] = None
    applied_at: datetime
    updated_at: datetime
    candidate: CandidateDetail
    job: ApplicationJobRef
    assigned_recruiter: Optional[UserSummary] = None
    notes: list[NoteResponse]
    documents: list[DocumentResponse]
    audit_log: list[AuditEntryResponse] = Field(description="Most recent entries, newest first")
