"""Application note endpoints."""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_permission
from api.schemas.notes import NoteCreate, NoteResponse
from api.services import notes as note_service
from core.middleware.authorization import Permission
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ats/applications", tags=["notes"])


@router.get("/{application_id}/notes", response_model=list[NoteResponse])
async def list_notes(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.APPLICATION_READ)),
):
    """Notes on an application, newest first."""
    notes = await note_service.list_notes(db, application_id)
    return [NoteResponse.model_validate(note) for note in notes]


@router.post(
    "/{application_id}/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_note(
    application_id: int,
    body: NoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.NOTE_CREATE)),
):
    """Add a free-form note. The application's stage is not changed."""
    note = await note_service.add_note(db, application_id, body.content, current_user.id)
    return NoteResponse.model_validate(note)
