"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from timeclock.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, nullable=True)  # None for system actions
    action = Column(String, nullable=False)  # e.g., "PUNCH_CLOCK_IN", "TIME_ENTRY_EDIT"
    entity_type = Column(String, nullable=False)  # e.g., "time_entries", "work_hours"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
