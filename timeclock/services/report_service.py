"""
Report service - worked-time figures for supervisors and employees.

Live figures (overview, timesheet) are recomputed from punch events through the
reconstructor and aggregator. Settled figures (daily summary, hours per date,
hours per employee) read the work_hours rows written on clock-out.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from timeclock.core.errors import InvalidRange
from timeclock.models.punch_event import PunchEvent
from timeclock.models.work_hours import WorkHours
from timeclock.services.duration_aggregator import ShiftSummary, daily_total, summarize, summarize_shifts
from timeclock.services.punch_service import PunchState, state_from_shifts
from timeclock.services.punch_store import fetch_events
from timeclock.services.shift_reconstructor import Shift, reconstruct
from timeclock.utils.datetime_utils import ensure_utc, local_date, now_utc


@dataclass
class EmployeeWorkTime:
    employee_id: int
    total: timedelta
    today: timedelta
    state: PunchState
    daily_totals: Dict[date, timedelta] = field(default_factory=dict)
    shifts: List[Shift] = field(default_factory=list)
    entries: List[PunchEvent] = field(default_factory=list)


def _check_range(start, end) -> None:
    if start is not None and end is not None and start > end:
        raise InvalidRange()


def _in_window(event: PunchEvent, from_at: Optional[datetime], to_at: Optional[datetime]) -> bool:
    at = ensure_utc(event.timestamp)
    if from_at is not None and at < ensure_utc(from_at):
        return False
    return to_at is None or at <= ensure_utc(to_at)


def employee_overview(
    db: Session,
    employee_ids: Iterable[int],
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> List[EmployeeWorkTime]:
    """
    Supervisor overview: for each employee, total worked time in the window,
    worked time today, per-day totals and the current punch state.

    Employees are returned in the order given, each once. Shifts are rebuilt
    from the whole history and then cut to the window, so a shift crossing
    either end only contributes its time inside it. Today's figure and the
    punch state do not depend on the window.
    """
    _check_range(from_at, to_at)
    now = ensure_utc(now) if now is not None else now_utc()
    ids = list(dict.fromkeys(employee_ids))

    by_employee: Dict[int, List[PunchEvent]] = defaultdict(list)
    for event in fetch_events(db, ids):
        by_employee[event.employee_id].append(event)

    today = local_date(now)
    overview = []
    for employee_id in ids:
        events = by_employee.get(employee_id, [])
        shifts = reconstruct(events, now=now)
        summary = summarize_shifts(shifts, from_at=from_at, to_at=to_at)
        overview.append(EmployeeWorkTime(
            employee_id=employee_id,
            total=summary.total,
            today=daily_total(shifts, today),
            state=state_from_shifts(shifts),
            daily_totals=summary.daily_totals,
            shifts=summary.shifts,
            entries=sorted(
                (e for e in events if e.is_active and _in_window(e, from_at, to_at)),
                key=lambda e: ensure_utc(e.timestamp),
                reverse=True,
            ),
        ))
    return overview


def timesheet(
    db: Session,
    employee_id: int,
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> ShiftSummary:
    """One employee's shifts reaching into the window and their time inside it."""
    _check_range(from_at, to_at)
    return summarize(fetch_events(db, [employee_id]), now=now, from_at=from_at, to_at=to_at)


def daily_summary(
    db: Session,
    employee_id: int,
    from_date: date,
    to_date: date,
) -> List[Tuple[date, float]]:
    """Settled hours per calendar day in [from_date, to_date], ordered by day."""
    _check_range(from_date, to_date)
    rows = (
        db.query(WorkHours.date, func.sum(WorkHours.hours))
        .filter(
            WorkHours.employee_id == employee_id,
            WorkHours.date >= from_date,
            WorkHours.date <= to_date,
        )
        .group_by(WorkHours.date)
        .order_by(WorkHours.date)
        .all()
    )
    return [(day, float(hours or 0.0)) for day, hours in rows]


def hours_by_date(db: Session, employee_id: int, day: date) -> List[WorkHours]:
    """Settled work_hours rows of one day, ordered by clock-in."""
    return (
        db.query(WorkHours)
        .filter(WorkHours.employee_id == employee_id, WorkHours.date == day)
        .order_by(WorkHours.clock_in)
        .all()
    )


def hours_by_employee(
    db: Session,
    employee_ids: Iterable[int],
    from_date: date,
    to_date: date,
) -> Dict[int, float]:
    """Settled hours per employee over a date range, rounded to 2 decimals (0.0 when none)."""
    _check_range(from_date, to_date)
    ids = list(dict.fromkeys(employee_ids))
    if not ids:
        return {}
    rows = (
        db.query(WorkHours.employee_id, func.sum(WorkHours.hours))
        .filter(
            WorkHours.employee_id.in_(ids),
            WorkHours.date >= from_date,
            WorkHours.date <= to_date,
        )
        .group_by(WorkHours.employee_id)
        .all()
    )
    totals = {employee_id: float(hours or 0.0) for employee_id, hours in rows}
    return {employee_id: round(totals.get(employee_id, 0.0), 2) for employee_id in ids}
