"""
Application service functions for API endpoints.

Read views over applications: the filterable staff list and the full
candidate profile for one application.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.services.audit import recent_entries
from core.exceptions import NotFoundError
from database.models.applications import Application, Note, Stage
from database.models.audit import EntityType
from database.models.candidates import Candidate, VisaStatus
from database.models.documents import Document

logger = logging.getLogger(__name__)

AUDIT_ENTRIES_ON_DETAIL = 20


async def count_children(
    session: AsyncSession, application_ids: Iterable[int]
) -> Tuple[Dict[int, int], Dict[int, int]]:
    """Note and document counts per application."""
    ids = list(application_ids)
    if not ids:
        return {}, {}

    note_rows = await session.execute(
        select(Note.application_id, func.count(Note.id))
        .where(Note.application_id.in_(ids))
        .group_by(Note.application_id)
    )
    document_rows = await session.execute(
        select(Document.application_id, func.count(Document.id))
        .where(Document.application_id.in_(ids))
        .group_by(Document.application_id)
    )
    return dict(note_rows.all()), dict(document_rows.all())


def application_row(
    application: Application,
    note_counts: Dict[int, int],
    document_counts: Dict[int, int],
    include_job: bool = True,
) -> Dict[str, Any]:
    """Flatten an application with its loaded candidate, job and recruiter."""
    return {
        "id": application.id,
        "stage": application.stage,
        "is_processed": application.is_processed,
        "rejection_reason": application.rejection_reason,
        "applied_at": application.applied_at,
        "updated_at": application.updated_at,
        "candidate": application.candidate,
        "job": application.job if include_job else None,
        "assigned_recruiter": application.assigned_recruiter,
        "note_count": note_counts.get(application.id, 0),
        "document_count": document_counts.get(application.id, 0),
    }


async def list_applications(
    session: AsyncSession,
    stage: Optional[Stage] = None,
    recruiter_id: Optional[int] = None,
    visa_status: Optional[VisaStatus] = None,
    job_id: Optional[int] = None,
    search: Optional[str] = None,
    limit: int = 25,
    offset: int = 0,
) -> Tuple[List[Dict[str, Any]], int]:
    """
    List applications, newest first.

    Args:
        session: Database session
        stage: Filter by current stage
        recruiter_id: Filter by assigned recruiter
        visa_status: Filter by candidate visa status
        job_id: Filter by job
        search: Case-insensitive match on candidate name, email or employer
        limit: Page size
        offset: Rows to skip

    Returns:
        (rows for this page, total matching rows)
    """
    query = select(Application).join(Candidate, Application.candidate_id == Candidate.id)

    if stage is not None:
        query = query.where(Application.stage == stage)
    if recruiter_id is not None:
        query = query.where(Application.assigned_recruiter_id == recruiter_id)
    if job_id is not None:
        query = query.where(Application.job_id == job_id)
    if visa_status is not None:
        query = query.where(Candidate.visa_status == visa_status)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                Candidate.first_name.ilike(pattern),
                Candidate.last_name.ilike(pattern),
                Candidate.email.ilike(pattern),
                Candidate.current_employer.ilike(pattern),
            )
        )

    total = await session.scalar(select(func.count()).select_from(query.subquery())) or 0

    result = await session.execute(
        query.options(
            selectinload(Application.candidate),
            selectinload(Application.job),
            selectinload(Application.assigned_recruiter),
        )
        .order_by(Application.applied_at.desc(), Application.id.desc())
        .limit(limit)
        .offset(offset)
    )
    applications = result.scalars().all()

    note_counts, document_counts = await count_children(session, [a.id for a in applications])
    return [application_row(a, note_counts, document_counts) for a in applications], total


async def get_application_detail(session: AsyncSession, application_id: int) -> Dict[str, Any]:
    """
    Full profile for one application.

    Returns:
        Candidate, job summary, recruiter, notes and documents (newest first)
        and the most recent audit entries

    Raises:
        NotFoundError: Application does not exist
    """
    result = await session.execute(
        select(Application)
        .options(
            selectinload(Application.candidate),
            selectinload(Application.job),
            selectinload(Application.assigned_recruiter),
            selectinload(Application.notes).selectinload(Note.author),
            selectinload(Application.documents).selectinload(Document.uploaded_by),
        )
        .where(Application.id == application_id)
        .execution_options(populate_existing=True)
    )
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")

    notes = sorted(application.notes, key=lambda n: (n.created_at, n.id), reverse=True)
    documents = sorted(application.documents, key=lambda d: (d.uploaded_at, d.id), reverse=True)
    audit_log = await recent_entries(
        session, EntityType.APPLICATION, application.id, limit=AUDIT_ENTRIES_ON_DETAIL
    )

    return {
        "id": application.id,
        "stage": application.stage,
        "is_processed": application.is_processed,
        "rejection_reason": application.rejection_reason,
        "applied_at": application.applied_at,
        "updated_at": application.updated_at,
        "candidate": application.candidate,
        "job": application.job,
        "assigned_recruiter": application.assigned_recruiter,
        "notes": notes,
        "documents": documents,
        "audit_log": audit_log,
    }
