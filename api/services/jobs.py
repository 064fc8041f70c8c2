"""
Job service functions for API endpoints.

Covers the public job board (published, open jobs with internal fields
stripped) and staff requisition management.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.services.analytics import PipelineStats, stats_by_job, summarize
from api.services.applications import application_row, count_children
from api.services.audit import write_audit_log
from core.exceptions import NotFoundError, ValidationError
from core.middleware.authorization import RECRUITER_ROLES
from core.storage.local import DocumentStorage
from core.utils.datetime import now
from database.models.applications import Application, Note, Stage
from database.models.audit import AuditAction, EntityType
from database.models.documents import Document
from database.models.jobs import Job, JobStatus, JobType
from database.models.users import User

logger = logging.getLogger(__name__)

# Columns that may not be set to null through an update
REQUIRED_JOB_FIELDS = frozenset(
    {
        "title",
        "public_description",
        "is_remote",
        "job_type",
        "visa_sponsorship",
        "show_salary",
        "is_published",
        "status",
    }
)

VISA_SPONSORED = "sponsored"

TAB_ALL = "all"
TAB_UNPROCESSED = "unprocessed"
TAB_PROCESSED = "processed"


# ==================== Public Job Board ==================== #
def public_salary(job: Job) -> Optional[Dict[str, Optional[int]]]:
    if not job.show_salary:
        return None
    return {"min": job.salary_min, "max": job.salary_max}


def public_job_summary(job: Job) -> Dict[str, Any]:
    return {
        "id": job.id,
        "title": job.display_title,
        "department": job.department,
        "location_city": job.location_city,
        "location_state": job.location_state,
        "is_remote": job.is_remote,
        "job_type": job.job_type,
        "visa_sponsorship": job.visa_sponsorship,
        "salary": public_salary(job),
        "created_at": job.created_at,
    }


def public_job_detail(job: Job) -> Dict[str, Any]:
    return {
        **public_job_summary(job),
        "description": job.public_description,
        "prerequisites": job.prerequisites,
        "responsibilities": job.responsibilities,
    }


def _published_open():
    return and_(Job.is_published.is_(True), Job.status == JobStatus.OPEN)


async def list_public_jobs(
    session: AsyncSession,
    location: Optional[str] = None,
    job_type: Optional[JobType] = None,
    visa: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Published, open jobs for the job board, newest first.

    Args:
        session: Database session
        location: Substring of the city or state
        job_type: Exact engagement type
        visa: "sponsored" limits to jobs offering sponsorship
        search: Substring of the public title, description or prerequisites
    """
    query = select(Job).where(_published_open())

    if location and location.strip():
        pattern = f"%{location.strip()}%"
        query = query.where(or_(Job.location_city.ilike(pattern), Job.location_state.ilike(pattern)))
    if job_type is not None:
        query = query.where(Job.job_type == job_type)
    if visa == VISA_SPONSORED:
        query = query.where(Job.visa_sponsorship.is_(True))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                Job.public_title.ilike(pattern),
                and_(Job.public_title.is_(None), Job.title.ilike(pattern)),
                Job.public_description.ilike(pattern),
                Job.prerequisites.ilike(pattern),
            )
        )

    result = await session.execute(query.order_by(Job.created_at.desc(), Job.id.desc()))
    return [public_job_summary(job) for job in result.scalars().all()]


async def get_public_job(session: AsyncSession, job_id: int) -> Dict[str, Any]:
    """
    Raises:
        NotFoundError: Job missing, unpublished or not open
    """
    result = await session.execute(select(Job).where(Job.id == job_id, _published_open()))
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFoundError("Job not found")
    return public_job_detail(job)


# ==================== Staff ==================== #
def _with_people():
    return (selectinload(Job.created_by), selectinload(Job.assigned_recruiter))


async def get_job(session: AsyncSession, job_id: int) -> Job:
    """
    Job with creator and recruiter loaded.

    Raises:
        NotFoundError: Job does not exist
    """
    result = await session.execute(
        select(Job)
        .options(*_with_people())
        .where(Job.id == job_id)
        .execution_options(populate_existing=True)
    )
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFoundError(f"Job {job_id} not found")
    return job


async def _check_recruiter(session: AsyncSession, recruiter_id: Optional[int]) -> None:
    if recruiter_id is None:
        return
    recruiter = await session.get(User, recruiter_id)
    if recruiter is None or not recruiter.is_active:
        raise NotFoundError(f"Recruiter {recruiter_id} not found")
    if recruiter.role not in RECRUITER_ROLES:
        raise ValidationError(
            f"User {recruiter_id} cannot be assigned jobs",
            details={"field": "assigned_recruiter_id"},
        )


def _check_salary_range(job: Job) -> None:
    if job.salary_min is not None and job.salary_max is not None and job.salary_min > job.salary_max:
        raise ValidationError("salary_min cannot exceed salary_max", details={"field": "salary_min"})


def _closed_at_for(status: JobStatus, current: Job):
    if status == JobStatus.CLOSED:
        return current.closed_at if current.status == JobStatus.CLOSED and current.closed_at else now()
    return None


async def list_jobs(
    session: AsyncSession,
    status: Optional[JobStatus] = None,
    recruiter_id: Optional[int] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Staff job list, newest first, each with its pipeline stats.

    Args:
        session: Database session
        status: Filter by status
        recruiter_id: Filter by assigned recruiter
        search: Substring of the internal title or department
    """
    query = select(Job).options(*_with_people())
    if status is not None:
        query = query.where(Job.status == status)
    if recruiter_id is not None:
        query = query.where(Job.assigned_recruiter_id == recruiter_id)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Job.title.ilike(pattern), Job.department.ilike(pattern)))

    result = await session.execute(query.order_by(Job.created_at.desc(), Job.id.desc()))
    jobs = result.scalars().all()
    stats = await stats_by_job(session, [job.id for job in jobs])

    return [
        {
            "id": job.id,
            "title": job.title,
            "public_title": job.public_title,
            "department": job.department,
            "location_city": job.location_city,
            "location_state": job.location_state,
            "is_remote": job.is_remote,
            "job_type": job.job_type,
            "visa_sponsorship": job.visa_sponsorship,
            "status": job.status,
            "is_published": job.is_published,
            "created_at": job.created_at,
            "updated_at": job.updated_at,
            "closed_at": job.closed_at,
            "created_by": job.created_by,
            "assigned_recruiter": job.assigned_recruiter,
            "stats": stats.get(job.id, PipelineStats()),
        }
        for job in jobs
    ]


async def create_job(
    session: AsyncSession,
    data: Dict[str, Any],
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> Job:
    """
    Create a job from validated fields.

    Raises:
        NotFoundError: Assigned recruiter does not exist
        ValidationError: Salary range inverted or recruiter role not assignable
    """
    await _check_recruiter(session, data.get("assigned_recruiter_id"))

    job = Job(**data, created_by_id=performed_by)
    _check_salary_range(job)
    if job.status == JobStatus.CLOSED:
        job.closed_at = now()
    session.add(job)
    await session.flush()

    write_audit_log(
        session,
        EntityType.JOB,
        job.id,
        AuditAction.CREATED,
        new_value={"title": job.title, "status": job.status.value},
        performed_by_id=performed_by,
        ip_address=ip_address,
    )
    await session.commit()
    logger.info(f"Job {job.id} created")
    return await get_job(session, job.id)


async def get_job_detail(
    session: AsyncSession,
    job_id: int,
    tab: str = TAB_ALL,
    stage: Optional[Stage] = None,
) -> Dict[str, Any]:
    """
    Job with its full stats and a filtered list of its applications.

    Args:
        session: Database session
        job_id: Job ID
        tab: "all", "unprocessed" or "processed"
        stage: Only applications currently at this stage

    Raises:
        NotFoundError: Job does not exist
        ValidationError: Unknown tab
    """
    if tab not in (TAB_ALL, TAB_UNPROCESSED, TAB_PROCESSED):
        raise ValidationError(f"Invalid tab: {tab!r}", details={"field": "tab"})

    job = await get_job(session, job_id)

    all_rows = await session.execute(
        select(Application.stage, Application.is_processed).where(Application.job_id == job_id)
    )
    stats = summarize(all_rows.all())

    query = (
        select(Application)
        .options(
            selectinload(Application.candidate),
            selectinload(Application.assigned_recruiter),
        )
        .where(Application.job_id == job_id)
    )
    if tab == TAB_UNPROCESSED:
        query = query.where(Application.is_processed.is_(False))
    elif tab == TAB_PROCESSED:
        query = query.where(Application.is_processed.is_(True))
    if stage is not None:
        query = query.where(Application.stage == stage)

    result = await session.execute(
        query.order_by(Application.applied_at.desc(), Application.id.desc())
    )
    applications = result.scalars().all()
    note_counts, document_counts = await count_children(session, [a.id for a in applications])

    return {
        "job": job,
        "stats": stats,
        "applications": [
            application_row(a, note_counts, document_counts, include_job=False)
            for a in applications
        ],
    }


async def update_job(
    session: AsyncSession,
    job_id: int,
    changes: Dict[str, Any],
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> Job:
    """
    Apply a partial update. Keys absent from changes are left alone.

    Raises:
        NotFoundError: Job or assigned recruiter does not exist
        ValidationError: A required field set to null, or salary range inverted
    """
    for field_name in REQUIRED_JOB_FIELDS:
        if field_name in changes and changes[field_name] is None:
            raise ValidationError(f"{field_name} cannot be null", details={"field": field_name})

    job = await get_job(session, job_id)
    if "assigned_recruiter_id" in changes:
        await _check_recruiter(session, changes["assigned_recruiter_id"])

    old_value = {"title": job.title, "status": job.status.value}
    if "status" in changes:
        job.closed_at = _closed_at_for(JobStatus(changes["status"]), job)
    for field_name, value in changes.items():
        setattr(job, field_name, value)
    _check_salary_range(job)

    write_audit_log(
        session,
        EntityType.JOB,
        job.id,
        AuditAction.UPDATED,
        old_value=old_value,
        new_value={"title": job.title, "status": JobStatus(job.status).value},
        performed_by_id=performed_by,
        ip_address=ip_address,
    )
    await session.commit()
    logger.info(f"Job {job.id} updated: {sorted(changes)}")
    return await get_job(session, job.id)


async def set_job_status(
    session: AsyncSession,
    job_id: int,
    status: JobStatus,
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> Job:
    """
    Change job status. closed_at is stamped on close and cleared otherwise.
    """
    job = await get_job(session, job_id)

    previous = job.status
    job.closed_at = _closed_at_for(status, job)
    job.status = status

    write_audit_log(
        session,
        EntityType.JOB,
        job.id,
        AuditAction.STATUS_CHANGED,
        old_value={"status": previous.value},
        new_value={"status": status.value},
        performed_by_id=performed_by,
        ip_address=ip_address,
    )
    await session.commit()
    logger.info(f"Job {job.id} status {previous.value} -> {status.value}")
    return await get_job(session, job.id)


async def delete_job(
    session: AsyncSession,
    storage: DocumentStorage,
    job_id: int,
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> None:
    """
    Hard-delete a job with its applications, their notes and documents.

    Document files are removed after the rows are committed. Candidate
    documents not attached to one of these applications are kept.

    Raises:
        NotFoundError: Job does not exist
    """
    job = await session.get(Job, job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found")
    title = job.title

    application_ids = list(
        (await session.execute(select(Application.id).where(Application.job_id == job_id)))
        .scalars()
        .all()
    )
    storage_paths: List[str] = []
    if application_ids:
        storage_paths = list(
            (
                await session.execute(
                    select(Document.storage_path).where(
                        Document.application_id.in_(application_ids)
                    )
                )
            )
            .scalars()
            .all()
        )
        await session.execute(delete(Note).where(Note.application_id.in_(application_ids)))
        await session.execute(
            delete(Document).where(Document.application_id.in_(application_ids))
        )
        await session.execute(delete(Application).where(Application.id.in_(application_ids)))

    await session.execute(delete(Job).where(Job.id == job_id))

    write_audit_log(
        session,
        EntityType.JOB,
        job_id,
        AuditAction.DELETED,
        old_value={
            "title": title,
            "applications_removed": len(application_ids),
            "documents_removed": len(storage_paths),
        },
        performed_by_id=performed_by,
        ip_address=ip_address,
    )
    await session.commit()

    for path in storage_paths:
        storage.delete(path)
    logger.info(
        f"Job {job_id} deleted with {len(application_ids)} applications "
        f"and {len(storage_paths)} documents"
    )
