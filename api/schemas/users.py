"""Staff user schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from api.schemas.common import TimestampMixin
from database.models.users import Role


class UserSummary(BaseModel):
    """Compact user reference embedded in other resources."""

    id: int
    full_name: str
    email: str

    class Config:
        from_attributes = True


class UserResponse(TimestampMixin):
    id: int
    email: str
    full_name: str
    role: Role
    is_active: bool
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Schema for an admin creating a staff account."""

    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=8, max_length=128)
    role: Role = Role.VIEWER

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class UserUpdate(BaseModel):
    """Partial update; only supplied fields change."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[Role] = None
    is_active: Optional[bool] = None
