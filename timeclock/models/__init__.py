"""
Database models
"""
from timeclock.models.audit_log import AuditLog
from timeclock.models.punch_event import PunchEvent, PunchType, LaborCategory, EntryChange
from timeclock.models.work_hours import WorkHours

__all__ = [
    "AuditLog",
    "PunchEvent",
    "PunchType",
    "LaborCategory",
    "EntryChange",
    "WorkHours",
]
