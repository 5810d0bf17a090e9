"""
Audit logging service
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from timeclock.models.audit_log import AuditLog
from timeclock.utils.datetime_utils import now_utc
from timeclock.utils.json_serializer import sanitize_for_json


def log_audit(
    db: Session,
    actor_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Create an audit log entry

    Args:
        db: Database session
        actor_id: ID of the user performing the action (None for system actions)
        action: Action type (e.g., "PUNCH_CLOCK_OUT", "TIME_ENTRY_EDIT")
        entity_type: Type of entity (e.g., "time_entries", "work_hours")
        entity_id: ID of the affected entity (optional)
        meta: Additional metadata as dictionary (optional)

    Returns:
        Created AuditLog instance
    """
    safe_meta = sanitize_for_json(meta) if meta is not None else None

    # Explicitly set created_at to avoid SQLite issues with server_default
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=safe_meta,
        created_at=now_utc()
    )
    db.add(audit_log)
    db.commit()
    db.refresh(audit_log)
    return audit_log
