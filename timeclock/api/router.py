"""
Main API router
"""
from fastapi import APIRouter

from timeclock.api.v1 import (
    health,
    version,
    employees,
    reports,
)
from timeclock.api.v1.admin import admin_router

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(employees.router, prefix="/employees", tags=["time-clock"])
api_router.include_router(admin_router)
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
