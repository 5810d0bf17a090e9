"""
Timeclock Backend - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from timeclock.api.router import api_router
from timeclock.core.config import settings
from timeclock.core.constants import DEFAULT_VERSION
from timeclock.core.errors import (
    TimeclockError,
    timeclock_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)
from timeclock.core.logging import setup_logging
from timeclock.db.init_db import init_db
from timeclock.db.session import engine

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    parsed = urlparse(url)
    if parsed.scheme.startswith("sqlite"):
        return url
    if parsed.password:
        netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
        if parsed.port:
            netloc += f":{parsed.port}"
        return urlunparse(parsed._replace(netloc=netloc))
    return url


app = FastAPI(
    title="Timeclock Backend",
    description="Time-and-attendance: punches, shift reconstruction, settled work hours",
    version=settings.VERSION or DEFAULT_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(TimeclockError, timeclock_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_init_db() -> None:
    """Log DATABASE_URL and make sure the tables exist."""
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
    init_db(engine)
