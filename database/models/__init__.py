"""ORM models. Importing this package registers every table on Base.metadata."""

from database.models.users import User, Role
from database.models.jobs import Job, JobStatus, JobType
from database.models.candidates import Candidate, CandidateSource, VisaStatus
from database.models.applications import Application, Note, Stage, INITIAL_STAGE
from database.models.documents import Document, DocType
from database.models.audit import AuditLog, AuditAction, EntityType

__all__ = [
    "User",
    "Role",
    "Job",
    "JobStatus",
    "JobType",
    "Candidate",
    "CandidateSource",
    "VisaStatus",
    "Application",
    "Note",
    "Stage",
    "INITIAL_STAGE",
    "Document",
    "DocType",
    "AuditLog",
    "AuditAction",
    "EntityType",
]
