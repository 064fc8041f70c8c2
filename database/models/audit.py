from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, DateTime, JSON, Index
from database.engine import Base
from database.models.base import utc_now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.users import User


# ============ Audit Enums ============ #
class AuditAction(str, PyEnum):
    """Audit action tags."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    STAGE_CHANGED = "stage_changed"
    REJECTED = "rejected"
    RECRUITER_ASSIGNED = "recruiter_assigned"
    PROCESSED = "processed"
    DOCUMENT_UPLOADED = "document_uploaded"
    DOCUMENT_DELETED = "document_deleted"


class EntityType(str, PyEnum):
    APPLICATION = "application"
    JOB = "job"
    DOCUMENT = "document"
    USER = "user"


# ==================== Models ===================== #
class AuditLog(Base):
    """
    Append-only change log. Rows are never updated or deleted.
    """

    __tablename__ = "audit_logs"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[int] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # Before/after values
    old_value: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    new_value: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    # Actor and request context
    performed_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    ip_address: Mapped[str | None] = mapped_column(String(45))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )

    performed_by: Mapped["User | None"] = relationship("User")

    __table_args__ = (Index("idx_audit_entity", "entity_type", "entity_id"),)
