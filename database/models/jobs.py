"""
Jobs Module

Staffing requisitions: the internal record recruiters work from plus the
public-facing fields shown on the job board.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    DateTime,
    Text,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base
from database.models.base import utc_now, enum_values
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application
    from database.models.users import User


# ==================== Job Enums ===================== #
class JobStatus(str, PyEnum):
    """Requisition status."""

    OPEN = "open"
    ON_HOLD = "on_hold"
    CLOSED = "closed"


class JobType(str, PyEnum):
    """Engagement type."""

    FULL_TIME = "full_time"
    CONTRACT = "contract"
    C2C = "c2c"
    W2 = "w2"


# ==================== Models ===================== #
class Job(Base):
    """
    A staffing requisition. Visible on the job board only while published and open.
    """

    __tablename__: str = "jobs"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Internal
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(150))
    internal_notes: Mapped[str | None] = mapped_column(Text)

    # Public posting
    public_title: Mapped[str | None] = mapped_column(String(255))
    public_description: Mapped[str] = mapped_column(Text, nullable=False)
    prerequisites: Mapped[str | None] = mapped_column(Text)
    responsibilities: Mapped[str | None] = mapped_column(Text)

    # Location and terms
    location_city: Mapped[str | None] = mapped_column(String(120))
    location_state: Mapped[str | None] = mapped_column(String(60))
    is_remote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_type: Mapped[JobType] = mapped_column(
        SQLEnum(JobType, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=JobType.FULL_TIME,
    )
    visa_sponsorship: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Compensation
    salary_min: Mapped[int | None] = mapped_column(Integer)
    salary_max: Mapped[int | None] = mapped_column(Integer)
    show_salary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Lifecycle
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=JobStatus.OPEN,
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Ownership
    assigned_recruiter_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    # Relationships
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="job", cascade="all, delete-orphan"
    )
    assigned_recruiter: Mapped["User | None"] = relationship(
        "User", foreign_keys=[assigned_recruiter_id]
    )
    created_by: Mapped["User | None"] = relationship("User", foreign_keys=[created_by_id])

    __table_args__ = (
        Index("idx_job_board", "is_published", "status"),
        Index("idx_job_recruiter", "assigned_recruiter_id"),
    )

    @property
    def display_title(self) -> str:
        return self.public_title or self.title
