"""Free-form notes on applications. Notes are never edited or deleted."""

from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.services.pipeline import get_application_or_404
from core.utils.validators import require_text
from database.models.applications import Note

logger = logging.getLogger(__name__)


async def add_note(
    session: AsyncSession,
    application_id: int,
    content: Optional[str],
    author_id: Optional[int],
) -> Note:
    """
    Add a free-form note tagged with the application's current stage.

    Leaves the stage, processed flag and rejection reason alone.

    Raises:
        ValidationError: Empty content
        NotFoundError: Application does not exist
    """
    content = require_text(content, "content")
    application = await get_application_or_404(session, application_id)

    note = Note(
        application_id=application.id,
        author_id=author_id,
        content=content,
        stage_at_time=application.stage,
        is_stage_note=False,
    )
    session.add(note)
    await session.commit()

    logger.info(f"Note {note.id} added to application {application.id}")
    return await get_note(session, note.id)


async def get_note(session: AsyncSession, note_id: int) -> Note:
    result = await session.execute(
        select(Note)
        .options(selectinload(Note.author))
        .where(Note.id == note_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def list_notes(session: AsyncSession, application_id: int) -> List[Note]:
    """Notes on an application, newest first."""
    await get_application_or_404(session, application_id)
    result = await session.execute(
        select(Note)
        .options(selectinload(Note.author))
        .where(Note.application_id == application_id)
        .order_by(Note.created_at.desc(), Note.id.desc())
    )
    return list(result.scalars().all())
