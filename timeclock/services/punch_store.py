"""
Data-access boundary for punch events and settled work hours.

The work-time core only reads events through fetch_events and only writes
through insert_work_hours / insert_event inside a unit_of_work, so a failed
write never leaves part of an operation committed.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timeclock.core.errors import PersistenceFailure
from timeclock.models.punch_event import PunchEvent
from timeclock.models.work_hours import WorkHours
from timeclock.utils.datetime_utils import ensure_utc

_log = logging.getLogger(__name__)


def fetch_events(
    db: Session,
    employee_ids: Iterable[int],
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
    *,
    include_inactive: bool = True,
) -> List[PunchEvent]:
    """
    Load punch events for a set of employees, optionally bounded by [from_at, to_at].

    No ordering is guaranteed; callers sort. Inactive rows are included unless
    include_inactive=False, the reconstructor drops them itself.
    """
    ids = list(set(employee_ids))
    if not ids:
        return []

    query = db.query(PunchEvent).filter(PunchEvent.employee_id.in_(ids))
    if from_at is not None:
        query = query.filter(PunchEvent.timestamp >= ensure_utc(from_at))
    if to_at is not None:
        query = query.filter(PunchEvent.timestamp <= ensure_utc(to_at))
    if not include_inactive:
        query = query.filter(PunchEvent.is_active.is_(True))

    try:
        rows = query.all()
    except SQLAlchemyError as exc:
        raise PersistenceFailure("Could not load time entries") from exc

    events = []
    for row in rows:
        if row.timestamp is None:
            _log.warning("Rejecting time entry id=%s with no timestamp", row.id)
            continue
        events.append(row)
    return events


def insert_work_hours(db: Session, record: WorkHours) -> WorkHours:
    """Stage a work_hours row inside the current transaction."""
    try:
        db.add(record)
        db.flush()
    except SQLAlchemyError as exc:
        raise PersistenceFailure("Could not save work hours") from exc
    return record


def insert_event(db: Session, event: PunchEvent) -> PunchEvent:
    """Stage a time_entries row inside the current transaction."""
    try:
        db.add(event)
        db.flush()
    except SQLAlchemyError as exc:
        raise PersistenceFailure("Could not save time entry") from exc
    return event


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Commit everything staged in the block, or nothing.

    SQLAlchemy errors (including at commit) surface as PersistenceFailure;
    any other exception rolls back and propagates unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailure() from exc
    except Exception:
        db.rollback()
        raise
