"""
Clock-out reconciliation: close the employee's open clock-in and settle the
worked time into day-bucketed work_hours rows.

A shift that stays within one calendar day gives one row (is_split=False).
A shift that crosses midnight gives one row per day touched (is_split=True):
day 1 covers clock-in .. 23:59:59.999, the last day covers 00:00:00.000 ..
clock-out, and the hours of all rows add up to the shift's duration.
Rows and the clock_out event are committed together or not at all.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from timeclock.core.config import settings
from timeclock.core.errors import InvalidPunch, NoOpenShift
from timeclock.models.punch_event import PunchEvent, PunchType
from timeclock.models.work_hours import WorkHours
from timeclock.services.audit_service import log_audit
from timeclock.services.duration_aggregator import ZERO, daily_portions, interval_by_day, to_hours
from timeclock.services.punch_store import fetch_events, insert_event, insert_work_hours, unit_of_work
from timeclock.services.shift_reconstructor import Shift, active_events, reconstruct
from timeclock.utils.datetime_utils import end_of_day, ensure_utc, now_utc, start_of_day

_log = logging.getLogger(__name__)


@dataclass
class ClockOutResult:
    event: PunchEvent
    shift: Shift
    records: List[WorkHours] = field(default_factory=list)


def open_shift_events(events: Iterable[PunchEvent]) -> Optional[List[PunchEvent]]:
    """
    Active events from the latest clock_in onwards, or None when that clock_in
    is already followed by a clock_out (or there is no clock_in at all).
    """
    ordered = active_events(events)
    last_in = None
    for index, event in enumerate(ordered):
        if PunchType(event.event_type) == PunchType.CLOCK_IN:
            last_in = index
    if last_in is None:
        return None
    tail = ordered[last_in:]
    if any(PunchType(e.event_type) == PunchType.CLOCK_OUT for e in tail[1:]):
        return None
    return tail


def find_open_clock_in(events: Iterable[PunchEvent]) -> Optional[PunchEvent]:
    tail = open_shift_events(events)
    return tail[0] if tail else None


def build_work_hours_records(
    shift: Shift,
    *,
    subtract_breaks: bool = True,
    tz: Optional[ZoneInfo] = None,
) -> List[WorkHours]:
    """
    Day-bucketed work_hours rows for a closed shift (not yet persisted).

    Uses the aggregator's per-day decomposition, so the rows agree with what
    reports compute for the same shift.
    """
    gross = interval_by_day(shift.start_at, shift.end_at, tz)
    if subtract_breaks:
        net = daily_portions(shift, tz)
        portions = {day: net.get(day, ZERO) for day in gross}
    else:
        portions = {day: max(duration, ZERO) for day, duration in gross.items()}

    is_split = len(portions) > 1
    records = []
    for day, duration in portions.items():
        records.append(WorkHours(
            employee_id=shift.employee_id,
            date=day,
            hours=to_hours(duration),
            clock_in=max(shift.start_at, start_of_day(day, tz)),
            clock_out=min(shift.end_at, end_of_day(day, tz)),
            labor_category=shift.labor_category,
            work_center=shift.work_center,
            is_split=is_split,
        ))
    return records


def reconcile_clock_out(
    db: Session,
    employee_id: int,
    now: Optional[datetime] = None,
    *,
    actor_id: Optional[int] = None,
    subtract_breaks: Optional[bool] = None,
    tz: Optional[ZoneInfo] = None,
) -> ClockOutResult:
    """
    Clock the employee out at ``now`` and persist the settled work hours.

    Raises:
        NoOpenShift: no clock_in without a later clock_out; nothing is written
        InvalidPunch: now is not after the open clock_in
        PersistenceFailure: storage failed; nothing is written
    """
    now = ensure_utc(now) if now is not None else now_utc()
    if subtract_breaks is None:
        subtract_breaks = settings.SUBTRACT_BREAKS_ON_CLOCK_OUT

    tail = open_shift_events(fetch_events(db, [employee_id]))
    if not tail:
        _log.info("Clock-out rejected: employee_id=%s has no open clock-in", employee_id)
        raise NoOpenShift(employee_id)

    clock_in = tail[0]
    clock_in_at = ensure_utc(clock_in.timestamp)
    if now <= clock_in_at:
        raise InvalidPunch("Clock-out must be after clock-in")

    clock_out = PunchEvent(
        employee_id=employee_id,
        event_type=PunchType.CLOCK_OUT,
        timestamp=now,
        is_active=True,
        created_by=actor_id if actor_id is not None else employee_id,
    )
    shift = next(s for s in reconstruct(tail + [clock_out], now=now, tz=tz) if s.start is clock_in)
    records = build_work_hours_records(shift, subtract_breaks=subtract_breaks, tz=tz)

    with unit_of_work(db):
        for record in records:
            insert_work_hours(db, record)
        insert_event(db, clock_out)

    _log.info(
        "Clock-out settled: employee_id=%s clock_in=%s clock_out=%s records=%s split=%s",
        employee_id, clock_in_at.isoformat(), now.isoformat(), len(records), len(records) > 1,
    )
    log_audit(
        db=db,
        actor_id=actor_id if actor_id is not None else employee_id,
        action="PUNCH_CLOCK_OUT",
        entity_type="time_entries",
        entity_id=clock_out.id,
        meta={
            "clock_in_id": clock_in.id,
            "clock_in_at": clock_in_at,
            "clock_out_at": now,
            "work_hours_ids": [r.id for r in records],
            "hours": [r.hours for r in records],
            "breaks_subtracted": subtract_breaks,
        },
    )
    return ClockOutResult(event=clock_out, shift=shift, records=records)
