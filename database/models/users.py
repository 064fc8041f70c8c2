from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, DateTime, Enum as SQLEnum
from database.engine import Base
from database.models.base import utc_now, enum_values
from datetime import datetime
from enum import Enum as PyEnum


# ==================== Role ===================== #
class Role(str, PyEnum):
    ADMIN = "admin"  # full access, manages users and deletes jobs
    RECRUITER = "recruiter"  # works the pipeline
    HIRING_MANAGER = "hiring_manager"  # works the pipeline, cannot delete documents
    VIEWER = "viewer"  # read only


class User(Base):
    """
    Staff account for the internal dashboard.
    """

    __tablename__: str = "users"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        SQLEnum(Role, native_enum=False, length=30, values_callable=enum_values),
        nullable=False,
        default=Role.VIEWER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role.value}>"
