"""
API Services Layer.

Database operations behind the API endpoints. Every function takes the
request's AsyncSession and raises core.exceptions errors.
"""

from api.services.pipeline import (
    change_stage,
    reject,
    assign_recruiter,
    mark_processed,
)

from api.services.notes import (
    add_note,
    list_notes,
)

from api.services.analytics import (
    PipelineStats,
    ConversionRates,
    summarize,
    conversion_rates,
    overview,
    job_breakdown,
    recruiter_breakdown,
)

from api.services.documents import (
    upload_document,
    get_document,
    open_document,
    list_documents,
    delete_document,
)

from api.services.intake import submit_application

from api.services.jobs import (
    list_public_jobs,
    get_public_job,
    list_jobs,
    create_job,
    get_job,
    get_job_detail,
    update_job,
    set_job_status,
    delete_job,
)

from api.services.applications import (
    list_applications,
    get_application_detail,
)

from api.services.users import (
    authenticate,
    list_users,
    list_recruiters,
    create_user,
    update_user,
)

from api.services.audit import (
    write_audit_log,
    recent_entries,
)

__all__ = [
    # Pipeline
    "change_stage",
    "reject",
    "assign_recruiter",
    "mark_processed",
    # Notes
    "add_note",
    "list_notes",
    # Statistics
    "PipelineStats",
    "ConversionRates",
    "summarize",
    "conversion_rates",
    "overview",
    "job_breakdown",
    "recruiter_breakdown",
    # Documents
    "upload_document",
    "get_document",
    "open_document",
    "list_documents",
    "delete_document",
    # Intake
    "submit_application",
    # Jobs
    "list_public_jobs",
    "get_public_job",
    "list_jobs",
    "create_job",
    "get_job",
    "get_job_detail",
    "update_job",
    "set_job_status",
    "delete_job",
    # Applications
    "list_applications",
    "get_application_detail",
    # Users
    "authenticate",
    "list_users",
    "list_recruiters",
    "create_user",
    "update_user",
    # Audit
    "write_audit_log",
    "recent_entries",
]
