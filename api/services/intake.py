"""
Public application intake.

Unauthenticated submissions against an open, published job: validate the
form, find or create the candidate by email (filling blanks forward, never
overwriting with empty values), store the allowed attachments and create the
application at the initial stage.
"""

from typing import List, Mapping, Optional
import logging

import pydantic
from starlette.datastructures import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.intake import ApplicationForm
from api.services.audit import write_audit_log
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.storage.local import DocumentStorage, StoredFile
from database.models.applications import Application, INITIAL_STAGE
from database.models.audit import AuditAction, EntityType
from database.models.candidates import Candidate, CandidateSource
from database.models.documents import Document, DocType
from database.models.jobs import Job, JobStatus

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "You have already applied for this position"

# Upload field name -> document type
FIELD_DOC_TYPES: dict[str, DocType] = {
    "resume": DocType.RESUME,
    "passport": DocType.PASSPORT,
    "visa": DocType.VISA_STAMP,
    "ead": DocType.EAD,
}


def doc_type_for_field(field_name: Optional[str]) -> DocType:
    return FIELD_DOC_TYPES.get((field_name or "").strip().lower(), DocType.OTHER)


def parse_application_form(fields: Mapping[str, Optional[str]]) -> ApplicationForm:
    """
    Validate raw form fields.

    Blank values count as absent, so a blank required field is reported as
    missing.

    Raises:
        ValidationError: Naming the first missing or invalid field
    """
    supplied = {
        key: value.strip()
        for key, value in fields.items()
        if isinstance(value, str) and value.strip()
    }
    try:
        return ApplicationForm.model_validate(supplied)
    except pydantic.ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(loc) for loc in error["loc"]) or "form"
        if error["type"] == "missing":
            message = f"Missing required field: {field}"
        else:
            message = f"Invalid value for {field}: {error['msg']}"
        raise ValidationError(message, details={"field": field})


async def get_open_job(session: AsyncSession, job_id: int) -> Job:
    """
    Raises:
        NotFoundError: Job missing, unpublished or not open
    """
    result = await session.execute(
        select(Job).where(
            Job.id == job_id,
            Job.is_published.is_(True),
            Job.status == JobStatus.OPEN,
        )
    )
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFoundError("Job not found or no longer accepting applications")
    return job


async def _find_or_create_candidate(session: AsyncSession, form: ApplicationForm) -> Candidate:
    result = await session.execute(select(Candidate).where(Candidate.email == form.email))
    candidate = result.scalar_one_or_none()

    if candidate is None:
        candidate = Candidate(
            first_name=form.first_name,
            last_name=form.last_name,
            email=form.email,
            source=CandidateSource.JOB_BOARD,
            **form.supplied_profile_fields(),
        )
        session.add(candidate)
        await session.flush()
        return candidate

    # Fill forward: supplied values replace old ones, blanks never erase
    candidate.first_name = form.first_name
    candidate.last_name = form.last_name
    for name, value in form.supplied_profile_fields().items():
        setattr(candidate, name, value)
    return candidate


async def _application_exists(session: AsyncSession, job_id: int, candidate_id: int) -> bool:
    result = await session.execute(
        select(Application.id).where(
            Application.job_id == job_id, Application.candidate_id == candidate_id
        )
    )
    return result.scalar_one_or_none() is not None


async def submit_application(
    session: AsyncSession,
    storage: DocumentStorage,
    job_id: int,
    fields: Mapping[str, Optional[str]],
    files: List[tuple[str, UploadFile]],
    ip_address: Optional[str] = None,
    max_files: Optional[int] = None,
) -> Application:
    """
    Accept a public application.

    Args:
        session: Database session
        storage: Document storage
        job_id: Job being applied to
        fields: Text form fields
        files: (field name, upload) pairs; disallowed MIME types are skipped
        ip_address: Client address for the audit entry
        max_files: Reject submissions with more file parts than this

    Returns:
        The new application

    Raises:
        NotFoundError: Job not open for applications
        ValidationError: Missing or malformed fields, too many files
        ConflictError: Candidate already applied to this job
    """
    job = await get_open_job(session, job_id)
    form = parse_application_form(fields)

    if max_files is not None and len(files) > max_files:
        raise ValidationError(
            f"At most {max_files} files can be uploaded per application",
            details={"field": "files"},
        )

    candidate = await _find_or_create_candidate(session, form)
    if await _application_exists(session, job.id, candidate.id):
        await session.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)

    saved: List[tuple[str, UploadFile, StoredFile]] = []
    try:
        for field_name, upload in files:
            if not storage.validate_type(upload.content_type):
                logger.info(
                    f"Skipping upload in field {field_name!r}: type {upload.content_type!r} not allowed"
                )
                await upload.close()
                continue
            stored = await storage.save(
                upload, upload.filename, upload.content_type, candidate.id
            )
            saved.append((field_name, upload, stored))

        application = Application(
            job_id=job.id,
            candidate_id=candidate.id,
            stage=INITIAL_STAGE,
            is_processed=False,
            assigned_recruiter_id=job.assigned_recruiter_id,
        )
        session.add(application)
        await session.flush()

        for field_name, upload, stored in saved:
            session.add(
                Document(
                    candidate_id=candidate.id,
                    application_id=application.id,
                    doc_type=doc_type_for_field(field_name),
                    original_filename=upload.filename or "upload",
                    storage_path=stored.storage_path,
                    file_size_bytes=stored.size_bytes,
                    mime_type=stored.mime_type,
                )
            )

        write_audit_log(
            session,
            EntityType.APPLICATION,
            application.id,
            AuditAction.CREATED,
            new_value={
                "job_id": job.id,
                "candidate_id": candidate.id,
                "source": CandidateSource.JOB_BOARD.value,
                "stage": INITIAL_STAGE.value,
            },
            ip_address=ip_address,
        )
        await session.commit()
    except IntegrityError:
        # A concurrent submission for the same pair won the unique constraint
        await _discard(session, storage, saved)
        raise ConflictError(DUPLICATE_MESSAGE)
    except Exception:
        await _discard(session, storage, saved)
        raise

    logger.info(
        f"Application {application.id} received for job {job.id} "
        f"(candidate {candidate.id}, {len(saved)} documents)"
    )
    return application


async def _discard(
    session: AsyncSession,
    storage: DocumentStorage,
    saved: List[tuple[str, UploadFile, StoredFile]],
) -> None:
    await session.rollback()
    for _, _, stored in saved:
        storage.delete(stored.storage_path)
