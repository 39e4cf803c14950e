"""
Rising Sun Computers - Attendance & Payroll Backend - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from risingsun.api.router import api_router
from risingsun.core.config import settings
from risingsun.core.constants import SYSTEM_CREDIT
from risingsun.core.errors import (
    engine_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from risingsun.core.exceptions import AttendanceEngineError
from risingsun.core.logging import setup_logging
from risingsun.db.session import SessionLocal, init_db
from risingsun.services.user_service import ensure_initial_admin

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "***"
    if parsed.scheme.startswith("sqlite"):
        return url
    if parsed.password:
        netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
        if parsed.port:
            netloc += f":{parsed.port}"
        return urlunparse(parsed._replace(netloc=netloc))
    return url


# Create FastAPI app
app = FastAPI(
    title="Rising Sun Attendance & Payroll",
    description=f"Attendance tracking and monthly payroll - {SYSTEM_CREDIT}",
    version=settings.VERSION or "1.0.0"
)

# Configure CORS - must be before other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(AttendanceEngineError, engine_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL and the business timezone at startup."""
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
    logger.info("Business timezone: %s", settings.BUSINESS_TZ)


@app.on_event("startup")
def create_tables() -> None:
    """Create any missing tables."""
    init_db()


@app.on_event("startup")
def bootstrap_initial_admin() -> None:
    """
    Create the initial admin user if no admin exists, so the system always
    has someone who can manage users and salaries.
    """
    db = SessionLocal()
    try:
        admin = ensure_initial_admin(db, settings.INITIAL_ADMIN_EMAIL, settings.INITIAL_ADMIN_PASSWORD)
        if admin is None:
            logger.info("Admin user already exists, skipping initial bootstrap")
        else:
            logger.info("Initial admin user created: %s", admin.email)
            logger.info("Password: [set via INITIAL_ADMIN_PASSWORD environment variable]")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error during admin bootstrap: %s", e)
    finally:
        db.close()
