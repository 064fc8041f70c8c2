"""Document vault schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from api.schemas.users import UserSummary
from database.models.documents import DocType


class DocumentResponse(BaseModel):
    id: int
    candidate_id: int
    application_id: Optional[int] = None
    doc_type: DocType
    original_filename: str
    file_size_bytes: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_by: Optional[UserSummary] = None
    uploaded_at: datetime

    class Config:
        from_attributes = True
