"""
Supervisor corrections of time entries: list, add, edit, soft-delete.
Edits keep the first original timestamp; deletes only flip is_active.
Every change is written to the audit log.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from timeclock.core.errors import EntryNotFound, InvalidPunch
from timeclock.models.punch_event import EntryChange, LaborCategory, PunchEvent, PunchType
from timeclock.services.audit_service import log_audit
from timeclock.services.punch_store import fetch_events, insert_event, unit_of_work
from timeclock.utils.datetime_utils import day_bounds, ensure_utc, local_date

_log = logging.getLogger(__name__)


def list_entries(
    db: Session,
    employee_ids: Iterable[int],
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
    *,
    include_inactive: bool = False,
) -> List[PunchEvent]:
    """Entries of the given employees, newest first."""
    events = fetch_events(db, employee_ids, from_at, to_at, include_inactive=include_inactive)
    return sorted(events, key=lambda e: ensure_utc(e.timestamp), reverse=True)


def _get_entry(db: Session, entry_id: int) -> PunchEvent:
    entry = db.query(PunchEvent).filter(PunchEvent.id == entry_id).first()
    if entry is None or not entry.is_active:
        raise EntryNotFound(entry_id)
    return entry


def _require_clock_in_before(
    db: Session,
    employee_id: int,
    timestamp: datetime,
    exclude_id: Optional[int] = None,
) -> None:
    """A break or clock-out needs an active clock-in earlier on the same calendar day."""
    day_start, day_end = day_bounds(local_date(timestamp))
    candidates = fetch_events(db, [employee_id], day_start, day_end, include_inactive=False)
    for event in candidates:
        if event.id == exclude_id:
            continue
        if PunchType(event.event_type) == PunchType.CLOCK_IN and ensure_utc(event.timestamp) <= timestamp:
            return
    raise InvalidPunch("An active clock-in must exist before recording a break or clock-out")


def add_entry(
    db: Session,
    actor_id: int,
    employee_id: int,
    event_type: PunchType,
    timestamp: datetime,
    *,
    labor_category: Optional[LaborCategory] = None,
    work_center: Optional[str] = None,
) -> PunchEvent:
    """Insert a time entry on behalf of an employee."""
    event_type = PunchType(event_type)
    timestamp = ensure_utc(timestamp)

    if event_type == PunchType.CLOCK_IN:
        labor_category = LaborCategory(labor_category) if labor_category else LaborCategory.SHIFT
    else:
        _require_clock_in_before(db, employee_id, timestamp)
        labor_category = None
        work_center = None

    entry = PunchEvent(
        employee_id=employee_id,
        event_type=event_type,
        timestamp=timestamp,
        labor_category=labor_category,
        work_center=work_center,
        is_active=True,
        created_by=actor_id,
    )
    with unit_of_work(db):
        insert_event(db, entry)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="TIME_ENTRY_CREATE",
        entity_type="time_entries",
        entity_id=entry.id,
        meta={
            "employee_id": employee_id,
            "event_type": event_type,
            "timestamp": timestamp,
            "labor_category": labor_category,
            "work_center": work_center,
        },
    )
    return entry


def update_entry(
    db: Session,
    actor_id: int,
    entry_id: int,
    *,
    timestamp: Optional[datetime] = None,
    event_type: Optional[PunchType] = None,
    labor_category: Optional[LaborCategory] = None,
    work_center: Optional[str] = None,
) -> PunchEvent:
    """
    Correct a time entry. The timestamp before the first correction is kept in
    original_timestamp; changes is set to "edited".
    """
    entry = _get_entry(db, entry_id)
    new_type = PunchType(event_type) if event_type is not None else PunchType(entry.event_type)
    new_timestamp = ensure_utc(timestamp) if timestamp is not None else ensure_utc(entry.timestamp)

    if new_type != PunchType.CLOCK_IN:
        _require_clock_in_before(db, entry.employee_id, new_timestamp, exclude_id=entry.id)

    meta = {
        "old_event_type": entry.event_type,
        "new_event_type": new_type,
        "old_timestamp": ensure_utc(entry.timestamp),
        "new_timestamp": new_timestamp,
    }

    with unit_of_work(db):
        if entry.original_timestamp is None:
            entry.original_timestamp = entry.timestamp
        entry.event_type = new_type
        entry.timestamp = new_timestamp
        if new_type == PunchType.CLOCK_IN:
            if labor_category is not None:
                entry.labor_category = LaborCategory(labor_category)
            elif entry.labor_category is None:
                entry.labor_category = LaborCategory.SHIFT
            if work_center is not None:
                entry.work_center = work_center
        else:
            entry.labor_category = None
            entry.work_center = None
        entry.changes = EntryChange.EDITED

    _log.info("Time entry edited: id=%s by actor_id=%s", entry_id, actor_id)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="TIME_ENTRY_EDIT",
        entity_type="time_entries",
        entity_id=entry_id,
        meta=meta,
    )
    db.refresh(entry)
    return entry


def delete_entry(db: Session, actor_id: int, entry_id: int) -> PunchEvent:
    """Soft-delete a time entry; it disappears from every reconstruction."""
    entry = _get_entry(db, entry_id)
    with unit_of_work(db):
        entry.is_active = False
        entry.changes = EntryChange.ELIMINATED

    _log.info("Time entry eliminated: id=%s by actor_id=%s", entry_id, actor_id)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="TIME_ENTRY_DELETE",
        entity_type="time_entries",
        entity_id=entry_id,
        meta={"employee_id": entry.employee_id},
    )
    db.refresh(entry)
    return entry
