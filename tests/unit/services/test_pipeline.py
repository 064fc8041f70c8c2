"""
Tests for the pipeline engine and notes.
"""

import pytest
from sqlalchemy import select

from api.services import notes as note_service
from api.services import pipeline
from core.exceptions import NotFoundError, ValidationError
from database.models.applications import Note, Stage
from database.models.audit import AuditLog
from database.models.users import Role, User


async def _notes(session, application_id):
    result = await session.execute(
        select(Note).where(Note.application_id == application_id).order_by(Note.id)
    )
    return list(result.scalars().all())


async def _audit_actions(session, application_id):
    result = await session.execute(
        select(AuditLog.action)
        .where(AuditLog.entity_type == "application", AuditLog.entity_id == application_id)
        .order_by(AuditLog.id)
    )
    return list(result.scalars().all())


class TestParseStage:

    def test_accepts_values_case_insensitively(self):
        assert pipeline.parse_stage(" Client_Submitted ") is Stage.CLIENT_SUBMITTED

    def test_rejects_unknown(self):
        with pytest.raises(ValidationError, match="Invalid stage"):
            pipeline.parse_stage("phone_screen")


class TestChangeStage:

    @pytest.mark.asyncio
    async def test_moves_and_records_previous_stage(self, session, application, staff_user):
        updated = await pipeline.change_stage(
            session, application.id, "screened", "  Spoke on the phone  ",
            performed_by=staff_user.id, ip_address="10.0.0.1",
        )

        assert updated.stage is Stage.SCREENED
        assert updated.is_processed is True

        notes = await _notes(session, application.id)
        assert len(notes) == 1
        assert notes[0].content == "Spoke on the phone"
        assert notes[0].stage_at_time is Stage.RESUME_RECEIVED
        assert notes[0].is_stage_note is True
        assert notes[0].author_id == staff_user.id

        assert await _audit_actions(session, application.id) == ["stage_changed"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("note", [None, "", "   \n\t"])
    async def test_note_is_mandatory(self, session, application, note):
        with pytest.raises(ValidationError):
            await pipeline.change_stage(session, application.id, Stage.VETTED, note)

        await session.refresh(application)
        assert application.stage is Stage.RESUME_RECEIVED
        assert application.is_processed is False
        assert await _notes(session, application.id) == []

    @pytest.mark.asyncio
    async def test_same_stage_is_still_recorded(self, session, application):
        await pipeline.change_stage(session, application.id, Stage.RESUME_RECEIVED, "Re-reviewed")

        assert application.stage is Stage.RESUME_RECEIVED
        assert application.is_processed is True
        assert len(await _notes(session, application.id)) == 1

    @pytest.mark.asyncio
    async def test_any_transition_is_allowed(self, session, application):
        await pipeline.change_stage(session, application.id, Stage.HIRED, "Straight to hire")
        await pipeline.change_stage(session, application.id, Stage.SCREENED, "Back to screening")

        assert application.stage is Stage.SCREENED

    @pytest.mark.asyncio
    async def test_rejection_reason_only_stored_when_rejecting(self, session, application):
        await pipeline.change_stage(
            session, application.id, Stage.VETTED, "Good", rejection_reason="ignored"
        )
        assert application.rejection_reason is None

        await pipeline.change_stage(
            session, application.id, Stage.REJECTED, "Client passed", rejection_reason="Rate too high"
        )
        assert application.rejection_reason == "Rate too high"

    @pytest.mark.asyncio
    async def test_reopening_keeps_reason_unless_configured(self, session, application):
        await pipeline.change_stage(
            session, application.id, Stage.REJECTED, "No", rejection_reason="Visa timing"
        )
        await pipeline.change_stage(session, application.id, Stage.SCREENED, "Reconsidered")
        assert application.rejection_reason == "Visa timing"

        await pipeline.change_stage(
            session, application.id, Stage.VETTED, "Moving on", clear_rejection_reason=True
        )
        assert application.rejection_reason is None

    @pytest.mark.asyncio
    async def test_missing_application(self, session):
        with pytest.raises(NotFoundError):
            await pipeline.change_stage(session, 9999, Stage.SCREENED, "note")


class TestReject:

    @pytest.mark.asyncio
    async def test_reject(self, session, application):
        updated = await pipeline.reject(session, application.id, "Not a fit", "Client feedback")

        assert updated.stage is Stage.REJECTED
        assert updated.rejection_reason == "Not a fit"
        assert await _audit_actions(session, application.id) == ["rejected"]

    @pytest.mark.asyncio
    async def test_reason_required(self, session, application):
        with pytest.raises(ValidationError, match="rejection_reason"):
            await pipeline.reject(session, application.id, "  ", "Client feedback")


class TestAssignAndProcess:

    @pytest.mark.asyncio
    async def test_assign_and_unassign(self, session, application, staff_user):
        await pipeline.assign_recruiter(session, application.id, staff_user.id)
        assert application.assigned_recruiter_id == staff_user.id
        assert application.stage is Stage.RESUME_RECEIVED
        assert await _notes(session, application.id) == []

        await pipeline.assign_recruiter(session, application.id, None)
        assert application.assigned_recruiter_id is None

    @pytest.mark.asyncio
    async def test_assign_unknown_user(self, session, application):
        with pytest.raises(NotFoundError):
            await pipeline.assign_recruiter(session, application.id, 4242)

    @pytest.mark.asyncio
    async def test_viewer_cannot_be_assigned(self, session, application):
        viewer = User(
            email="viewer@example.com", full_name="Read Only", password_hash="x", role=Role.VIEWER
        )
        session.add(viewer)
        await session.commit()

        with pytest.raises(ValidationError):
            await pipeline.assign_recruiter(session, application.id, viewer.id)

    @pytest.mark.asyncio
    async def test_mark_processed(self, session, application):
        updated = await pipeline.mark_processed(session, application.id)

        assert updated.is_processed is True
        assert updated.stage is Stage.RESUME_RECEIVED
        assert await _audit_actions(session, application.id) == ["processed"]


class TestNotes:

    @pytest.mark.asyncio
    async def test_free_note_leaves_state_alone(self, session, application, staff_user):
        note = await note_service.add_note(session, application.id, " Left a voicemail ", staff_user.id)

        assert note.content == "Left a voicemail"
        assert note.is_stage_note is False
        assert note.stage_at_time is Stage.RESUME_RECEIVED
        assert note.author.id == staff_user.id

        await session.refresh(application)
        assert application.is_processed is False
        assert application.stage is Stage.RESUME_RECEIVED

    @pytest.mark.asyncio
    async def test_empty_note_rejected(self, session, application):
        with pytest.raises(ValidationError):
            await note_service.add_note(session, application.id, "   ", None)

    @pytest.mark.asyncio
    async def test_list_newest_first(self, session, application):
        await note_service.add_note(session, application.id, "first", None)
        await pipeline.change_stage(session, application.id, Stage.SCREENED, "second")

        notes = await note_service.list_notes(session, application.id)
        assert [n.content for n in notes] == ["second", "first"]
