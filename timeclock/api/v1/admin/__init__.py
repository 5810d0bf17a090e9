"""Supervisor API."""
from fastapi import APIRouter
from timeclock.api.v1.admin import punches as admin_punches

admin_router = APIRouter(prefix="/admin", tags=["admin"])
admin_router.include_router(admin_punches.router, prefix="/punches", tags=["admin-punches"])
