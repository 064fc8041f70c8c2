"""
Application Models

The join between a Job and a Candidate, carrying the candidate's position in
the hiring pipeline, plus the immutable notes recorded against it.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Boolean,
    ForeignKey,
    DateTime,
    Text,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base
from database.models.base import utc_now, enum_values
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.candidates import Candidate
    from database.models.documents import Document
    from database.models.jobs import Job
    from database.models.users import User


# ==================== Pipeline Stage ===================== #
class Stage(str, PyEnum):
    """Pipeline stages, in board order. HIRED and REJECTED are the exits."""

    RESUME_RECEIVED = "resume_received"
    SCREENED = "screened"
    VETTED = "vetted"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_COMPLETED = "interview_completed"
    CLIENT_SUBMITTED = "client_submitted"
    CLIENT_INTERVIEW = "client_interview"
    OFFER_AWAITING = "offer_awaiting"
    OFFER_RELEASED = "offer_released"
    H1B_FILED = "h1b_filed"
    REJECTED = "rejected"
    HIRED = "hired"

    @classmethod
    def try_parse(cls, value: str | None) -> "Stage | None":
        if value is None:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


INITIAL_STAGE = Stage.RESUME_RECEIVED


# ==================== Application Model ===================== #
class Application(Base):
    __tablename__: str = "applications"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False
    )
    candidate_id: Mapped[int] = mapped_column(
        ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False
    )

    stage: Mapped[Stage] = mapped_column(
        SQLEnum(Stage, native_enum=False, length=30, values_callable=enum_values),
        nullable=False,
        default=INITIAL_STAGE,
    )
    is_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    assigned_recruiter_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )

    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    # Relationships
    job: Mapped["Job"] = relationship("Job", back_populates="applications")
    candidate: Mapped["Candidate"] = relationship("Candidate", back_populates="applications")
    assigned_recruiter: Mapped["User | None"] = relationship("User")
    notes: Mapped[list["Note"]] = relationship(
        "Note",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="Note.created_at.desc()",
    )
    documents: Mapped[list["Document"]] = relationship(
        "Document", back_populates="application", cascade="all, delete-orphan"
    )

    __table_args__ = (
        # One application per candidate per job; enforced by the database so
        # concurrent submissions cannot both insert
        UniqueConstraint("job_id", "candidate_id", name="uq_application_job_candidate"),
        Index("idx_application_stage", "stage"),
        Index("idx_application_recruiter", "assigned_recruiter_id"),
        Index("idx_application_applied", "applied_at"),
    )


# ==================== Note Model ===================== #
class Note(Base):
    """
    Immutable timestamped entry on an application.

    stage_at_time is the stage that was current when the note was written;
    for stage-change notes that is the stage being left.
    """

    __tablename__: str = "notes"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    content: Mapped[str] = mapped_column(Text, nullable=False)
    stage_at_time: Mapped[Stage | None] = mapped_column(
        SQLEnum(Stage, native_enum=False, length=30, values_callable=enum_values)
    )
    is_stage_note: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    application: Mapped["Application"] = relationship("Application", back_populates="notes")
    author: Mapped["User | None"] = relationship("User")
