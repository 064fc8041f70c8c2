"""
Document vault records.

Each row points at one file under the upload root. The row and the file are
separate artifacts; deleting a document removes both.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, ForeignKey, DateTime, Enum as SQLEnum, Index
from database.engine import Base
from database.models.base import utc_now, enum_values
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application
    from database.models.candidates import Candidate
    from database.models.users import User


class DocType(str, PyEnum):
    """Kinds of documents kept for a candidate."""

    RESUME = "resume"
    PASSPORT = "passport"
    VISA_STAMP = "visa_stamp"
    I797 = "i797"
    I94 = "i94"
    EAD = "ead"
    LCA = "lca"
    OFFER_LETTER = "offer_letter"
    OTHER = "other"

    @classmethod
    def try_parse(cls, value: str | None) -> "DocType | None":
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class Document(Base):
    __tablename__: str = "documents"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    candidate_id: Mapped[int] = mapped_column(
        ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False
    )
    application_id: Mapped[int | None] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE")
    )

    doc_type: Mapped[DocType] = mapped_column(
        SQLEnum(DocType, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=DocType.OTHER,
    )
    original_filename: Mapped[str] = mapped_column(String(500), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1000), nullable=False)  # POSIX, relative to upload root
    file_size_bytes: Mapped[int | None] = mapped_column(Integer)
    mime_type: Mapped[str | None] = mapped_column(String(150))

    uploaded_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )  # None for public intake
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    candidate: Mapped["Candidate"] = relationship("Candidate", back_populates="documents")
    application: Mapped["Application | None"] = relationship(
        "Application", back_populates="documents"
    )
    uploaded_by: Mapped["User | None"] = relationship("User")

    __table_args__ = (
        Index("idx_document_candidate", "candidate_id"),
        Index("idx_document_application", "application_id"),
    )
