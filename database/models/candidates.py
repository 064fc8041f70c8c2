"""
Candidate Models

Person profiles, unique by email. Created by the public application form or
by staff, and filled forward on every repeat application.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Date, DateTime, Text, Enum as SQLEnum
from database.engine import Base
from database.models.base import utc_now, enum_values
from datetime import date, datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application
    from database.models.documents import Document


# ==================== Candidate Enums ===================== #
class VisaStatus(str, PyEnum):
    """Immigration / work-authorization category."""

    H1B = "h1b"
    OPT = "opt"
    STEM_OPT = "stem_opt"
    EAD = "ead"
    L1 = "l1"
    TN = "tn"
    GC = "gc"
    CITIZEN = "citizen"
    OTHER = "other"


class CandidateSource(str, PyEnum):
    """Where the candidate record came from."""

    JOB_BOARD = "job_board"
    INTERNAL = "internal"
    REFERRAL = "referral"


# ==================== Models ===================== #
class Candidate(Base):
    __tablename__: str = "candidates"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Identity and contact
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(40))
    location_city: Mapped[str | None] = mapped_column(String(120))
    location_state: Mapped[str | None] = mapped_column(String(60))
    linkedin_url: Mapped[str | None] = mapped_column(String(500))

    # Work authorization
    visa_status: Mapped[VisaStatus | None] = mapped_column(
        SQLEnum(VisaStatus, native_enum=False, length=20, values_callable=enum_values)
    )
    visa_expiry_date: Mapped[date | None] = mapped_column(Date)
    passport_country: Mapped[str | None] = mapped_column(String(100))

    # Professional
    current_employer: Mapped[str | None] = mapped_column(String(255))
    experience_years: Mapped[int | None] = mapped_column(Integer)
    salary_expectation: Mapped[int | None] = mapped_column(Integer)
    skills: Mapped[str | None] = mapped_column(Text)  # comma separated

    source: Mapped[CandidateSource] = mapped_column(
        SQLEnum(CandidateSource, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=CandidateSource.INTERNAL,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    # Relationships
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="candidate"
    )
    documents: Mapped[list["Document"]] = relationship(
        "Document", back_populates="candidate"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def skill_list(self) -> list[str]:
        if not self.skills:
            return []
        return [s.strip() for s in self.skills.split(",") if s.strip()]
