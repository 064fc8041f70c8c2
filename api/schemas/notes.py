"""Note schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from api.schemas.users import UserSummary
from database.models.applications import Stage


class NoteCreate(BaseModel):
    content: Optional[str] = Field(None, description="Required, non-empty after trimming")


class NoteResponse(BaseModel):
    id: int
    application_id: int
    content: str
    stage_at_time: Optional[Stage] = None
    is_stage_note: bool
    author: Optional[UserSummary] = None
    created_at: datetime

    class Config:
        from_attributes = True
