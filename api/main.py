"""
FastAPI application initialization and configuration.
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI

from api.routes import health
from api.routes.v1 import (
    analytics,
    applications,
    auth,
    documents,
    jobs,
    notes,
    public_jobs,
    users,
)
from api.schemas.common import ErrorResponse
from api.services.users import ensure_bootstrap_admin
from core.config import Settings, get_settings
from core.middleware import (
    ErrorHandlingMiddleware,
    StructuredLoggingMiddleware,
    setup_error_handlers,
    setup_logging,
)
from core.storage.local import DocumentStorage
from database.engine import Database

logger = logging.getLogger(__name__)

# Documented on every v1 route; bodies come from core.middleware.error_handling
ERROR_RESPONSES = {status: {"model": ErrorResponse} for status in (400, 401, 403, 404, 409)}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    db = Database(settings.database_url, echo=settings.database_echo)
    await db.create_all()
    async with db.session() as session:
        admin = await ensure_bootstrap_admin(
            session, settings.bootstrap_admin_email, settings.bootstrap_admin_password
        )
        if admin is not None:
            logger.info(f"Bootstrap admin {admin.id} created")

    app.state.db = db
    app.state.storage = DocumentStorage(
        settings.upload_dir, max_file_size=settings.max_upload_size_bytes
    )

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")
    await db.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration to use; read from the environment when omitted
    """
    settings = settings or get_settings()

    # Setup structured logging (do this first, before anything else)
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    app = FastAPI(
        title=settings.app_name,
        description="Applicant tracking for H1B staffing: job board, pipeline and document vault",
        version=health.VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Setup error handlers (before middleware)
    setup_error_handlers(app)

    # Last registered runs outermost
    # 1. Error handling, innermost so the logging middleware sees the final status
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)

    # 2. Structured logging middleware
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=settings.log_request_body,
        max_body_size=settings.log_max_body_size,
    )

    # Health check routes
    app.include_router(health.router)

    # API v1 routes
    for module in (
        auth,
        public_jobs,
        jobs,
        applications,
        notes,
        documents,
        analytics,
        users,
    ):
        app.include_router(
            module.router, prefix=settings.api_v1_prefix, responses=ERROR_RESPONSES
        )

    return app


app = create_app()
