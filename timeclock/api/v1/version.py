"""
Version and metadata endpoint
"""
from fastapi import APIRouter
from timeclock.core.config import settings
from timeclock.core.constants import DEFAULT_VERSION, SERVICE_NAME

router = APIRouter()


@router.get("/version")
async def get_version():
    """
    Get application version and metadata

    Returns:
        Version information including service name, version, environment and work timezone
    """
    return {
        "service": SERVICE_NAME,
        "version": settings.VERSION or DEFAULT_VERSION,
        "env": settings.APP_ENV,
        "work_timezone": settings.WORK_TIMEZONE,
    }
