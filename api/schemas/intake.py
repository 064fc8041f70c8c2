"""Public application form schemas."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

from core.utils.validators import validate_email
from database.models.candidates import VisaStatus


# Multipart field names; blank values are treated as not supplied
PROFILE_FIELDS: tuple[str, ...] = (
    "phone",
    "location_city",
    "location_state",
    "linkedin_url",
    "visa_status",
    "current_employer",
    "experience_years",
    "salary_expectation",
    "skills",
)


class ApplicationForm(BaseModel):
    """Text fields of the public apply form."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    phone: Optional[str] = Field(None, max_length=40)
    location_city: Optional[str] = Field(None, max_length=120)
    location_state: Optional[str] = Field(None, max_length=60)
    linkedin_url: Optional[str] = Field(None, max_length=500)
    visa_status: Optional[VisaStatus] = None
    current_employer: Optional[str] = Field(None, max_length=255)
    experience_years: Optional[int] = Field(None, ge=0, le=80)
    salary_expectation: Optional[int] = Field(None, ge=0)
    skills: Optional[str] = Field(
        None, max_length=5000, description="Comma-separated, e.g. \"Java, Spring, AWS\""
    )

    @field_validator("email")
    @classmethod
    def validate_email_shape(cls, v: str) -> str:
        """Normalize to lower case; reject malformed addresses."""
        is_valid, result = validate_email(v)
        if not is_valid:
            raise ValueError(result)
        return result.lower()

    @field_validator("visa_status", mode="before")
    @classmethod
    def normalize_visa_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def supplied_profile_fields(self) -> dict:
        """Optional fields present in this submission."""
        return {
            name: getattr(self, name)
            for name in PROFILE_FIELDS
            if getattr(self, name) is not None
        }


class ApplyResponse(BaseModel):
    """Result of a successful public application."""

    application_id: int
    message: str = "Application submitted successfully"
