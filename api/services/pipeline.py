"""
Pipeline engine.

Owns the application stage state machine. Every stage change writes a stage
note recording the stage being left and an audit entry, in the same
transaction as the stage update. Any stage may follow any other; moving to
the current stage again is allowed and still recorded.
"""

from typing import Optional, Union
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from api.services.audit import write_audit_log
from core.exceptions import NotFoundError, ValidationError
from core.middleware.authorization import RECRUITER_ROLES
from core.utils.validators import clean_text, require_text
from database.models.applications import Application, Note, Stage
from database.models.audit import AuditAction, EntityType
from database.models.users import User

logger = logging.getLogger(__name__)


def parse_stage(value: Union[Stage, str, None]) -> Stage:
    """
    Coerce input to a Stage.

    Raises:
        ValidationError: If the value is not one of the pipeline stages
    """
    if isinstance(value, Stage):
        return value
    stage = Stage.try_parse(value)
    if stage is None:
        raise ValidationError(
            f"Invalid stage: {value!r}",
            details={"field": "stage", "allowed": [s.value for s in Stage]},
        )
    return stage


async def get_application_or_404(session: AsyncSession, application_id: int) -> Application:
    application = await session.get(Application, application_id)
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")
    return application


def _apply_stage_change(
    session: AsyncSession,
    application: Application,
    new_stage: Stage,
    note_content: str,
    rejection_reason: Optional[str],
    performed_by: Optional[int],
    ip_address: Optional[str],
    action: AuditAction,
    clear_rejection_reason: bool,
) -> Note:
    previous_stage = application.stage

    application.stage = new_stage
    application.is_processed = True
    if new_stage is Stage.REJECTED:
        application.rejection_reason = rejection_reason
    elif clear_rejection_reason:
        application.rejection_reason = None

    note = Note(
        application_id=application.id,
        author_id=performed_by,
        content=note_content,
        stage_at_time=previous_stage,
        is_stage_note=True,
    )
    session.add(note)

    new_value = {"stage": new_stage.value}
    if new_stage is Stage.REJECTED:
        new_value["rejection_reason"] = application.rejection_reason

    write_audit_log(
        session,
        EntityType.APPLICATION,
        application.id,
        action,
        old_value={"stage": previous_stage.value},
        new_value=new_value,
        performed_by_id=performed_by,
        ip_address=ip_address,
    )
    logger.info(
        f"Application {application.id} moved {previous_stage.value} -> {new_stage.value}"
    )
    return note


async def change_stage(
    session: AsyncSession,
    application_id: int,
    new_stage: Union[Stage, str],
    note_content: Optional[str],
    rejection_reason: Optional[str] = None,
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
    clear_rejection_reason: bool = False,
) -> Application:
    """
    Move an application to a new stage.

    Args:
        session: Database session
        application_id: Application to move
        new_stage: Target stage
        note_content: Mandatory note, non-empty after trimming
        rejection_reason: Stored only when the target is rejected
        performed_by: Acting user ID
        ip_address: Client address for the audit entry
        clear_rejection_reason: Drop a stale reason when leaving rejected

    Returns:
        The updated application

    Raises:
        ValidationError: Unknown stage or empty note
        NotFoundError: Application does not exist
    """
    stage = parse_stage(new_stage)
    note = require_text(note_content, "note_content")

    application = await get_application_or_404(session, application_id)
    _apply_stage_change(
        session,
        application,
        stage,
        note,
        clean_text(rejection_reason),
        performed_by,
        ip_address,
        AuditAction.STAGE_CHANGED,
        clear_rejection_reason,
    )
    await session.commit()
    return application


async def reject(
    session: AsyncSession,
    application_id: int,
    reason: Optional[str],
    note_content: Optional[str],
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> Application:
    """
    Move an application to rejected. Both the reason and the note are required.
    """
    reason = require_text(reason, "rejection_reason")
    note = require_text(note_content, "note_content")

    application = await get_application_or_404(session, application_id)
    _apply_stage_change(
        session,
        application,
        Stage.REJECTED,
        note,
        reason,
        performed_by,
        ip_address,
        AuditAction.REJECTED,
        clear_rejection_reason=False,
    )
    await session.commit()
    return application


async def assign_recruiter(
    session: AsyncSession,
    application_id: int,
    recruiter_id: Optional[int],
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> Application:
    """
    Reassign an application. None unassigns. No note, no stage effect.

    Raises:
        NotFoundError: Application, or an active recruiter with that ID, does not exist
        ValidationError: The user's role cannot own applications
    """
    application = await get_application_or_404(session, application_id)

    if recruiter_id is not None:
        recruiter = await session.get(User, recruiter_id)
        if recruiter is None or not recruiter.is_active:
            raise NotFoundError(f"Recruiter {recruiter_id} not found")
        if recruiter.role not in RECRUITER_ROLES:
            raise ValidationError(
                f"User {recruiter_id} cannot be assigned applications",
                details={"field": "recruiter_id"},
            )

    previous_recruiter_id = application.assigned_recruiter_id
    application.assigned_recruiter_id = recruiter_id

    write_audit_log(
        session,
        EntityType.APPLICATION,
        application.id,
        AuditAction.RECRUITER_ASSIGNED,
        old_value={"assigned_recruiter_id": previous_recruiter_id},
        new_value={"assigned_recruiter_id": recruiter_id},
        performed_by_id=performed_by,
        ip_address=ip_address,
    )
    await session.commit()
    logger.info(f"Application {application.id} assigned to recruiter {recruiter_id}")
    return application


async def mark_processed(
    session: AsyncSession,
    application_id: int,
    performed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> Application:
    """Flag an application as triaged without moving it."""
    application = await get_application_or_404(session, application_id)

    was_processed = application.is_processed
    application.is_processed = True

    write_audit_log(
        session,
        EntityType.APPLICATION,
        application.id,
        AuditAction.PROCESSED,
        old_value={"is_processed": was_processed},
        new_value={"is_processed": True},
        performed_by_id=performed_by,
        ip_address=ip_address,
    )
    await session.commit()
    return application
