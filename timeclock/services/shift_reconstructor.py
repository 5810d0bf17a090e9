"""
Shift reconstruction: turn an unordered stream of punch events for one employee
into an ordered list of shifts with nested breaks.

Pure and stateless. Every call recomputes from the events it is given; there is
no cached "current state". Inactive (soft-deleted) events are ignored.

Repair rules for malformed streams:
- clock_in while a shift is open: the open shift is force-closed at
  23:59:59.999 of its own start day, then the new shift opens.
- break_start while a break is open, break_end with no open break, and any
  event before the first clock_in are ignored.
- a shift still open at the end of input ends at ``now`` (employee still
  clocked in).
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from timeclock.models.punch_event import LaborCategory, PunchEvent, PunchType
from timeclock.utils.datetime_utils import end_of_day, ensure_utc, local_date, now_utc

_log = logging.getLogger(__name__)


class ShiftEndReason(str, enum.Enum):
    CLOCK_OUT = "clock_out"
    FORCED_DAY_END = "forced_day_end"  # a later clock_in arrived with no clock_out
    OPEN = "open"  # still clocked in; end_at is the query instant


@dataclass
class Break:
    start: PunchEvent
    end: Optional[PunchEvent] = None

    @property
    def start_at(self) -> datetime:
        return ensure_utc(self.start.timestamp)

    @property
    def end_at(self) -> Optional[datetime]:
        return ensure_utc(self.end.timestamp) if self.end is not None else None

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass
class Shift:
    start: PunchEvent
    breaks: List[Break] = field(default_factory=list)
    end: Optional[PunchEvent] = None
    end_at: Optional[datetime] = None
    end_reason: Optional[ShiftEndReason] = None

    @property
    def employee_id(self) -> int:
        return self.start.employee_id

    @property
    def start_at(self) -> datetime:
        return ensure_utc(self.start.timestamp)

    @property
    def labor_category(self) -> Optional[LaborCategory]:
        return self.start.labor_category

    @property
    def work_center(self) -> Optional[str]:
        return self.start.work_center

    @property
    def is_open(self) -> bool:
        return self.end_reason is None or self.end_reason == ShiftEndReason.OPEN

    @property
    def open_break(self) -> Optional[Break]:
        if self.breaks and self.breaks[-1].is_open:
            return self.breaks[-1]
        return None

    def close(self, at: datetime, reason: ShiftEndReason, event: Optional[PunchEvent] = None) -> None:
        self.end = event
        self.end_at = ensure_utc(at)
        self.end_reason = reason


def _sort_key(event: PunchEvent) -> datetime:
    return ensure_utc(event.timestamp)


def active_events(events: Iterable[PunchEvent]) -> List[PunchEvent]:
    """Active events in ascending timestamp order; ties keep arrival order."""
    return sorted((e for e in events if e.is_active), key=_sort_key)


def reconstruct(
    events: Iterable[PunchEvent],
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> List[Shift]:
    """
    Rebuild the shifts of one employee from their punch events.

    Args:
        events: Punch events in any order (inactive ones are skipped)
        now: Instant used to end a shift that is still open (default: current UTC time)
        tz: Zone for the forced day-end boundary (default: WORK_TIMEZONE)

    Returns:
        Shifts ordered by start instant; at most the last one has end_reason OPEN
    """
    shifts: List[Shift] = []
    current: Optional[Shift] = None

    for event in active_events(events):
        kind = PunchType(event.event_type)

        if kind == PunchType.CLOCK_IN:
            if current is not None:
                forced_end = end_of_day(local_date(current.start_at, tz), tz)
                # forced end past the new clock_in means both shifts count that time
                overlap = max(forced_end - ensure_utc(event.timestamp), timedelta(0))
                _log.warning(
                    "Malformed punch stream: employee_id=%s clock_in id=%s while shift from %s is open; "
                    "force-closing at %s (overlap_seconds=%s)",
                    event.employee_id, event.id, current.start_at.isoformat(), forced_end.isoformat(),
                    overlap.total_seconds(),
                )
                current.close(forced_end, ShiftEndReason.FORCED_DAY_END)
                shifts.append(current)
            current = Shift(start=event)
            continue

        if current is None:
            _log.debug("Ignoring %s id=%s with no open shift", kind.value, event.id)
            continue

        if kind == PunchType.BREAK_START:
            if current.open_break is None:
                current.breaks.append(Break(start=event))
            else:
                _log.debug("Ignoring duplicate break_start id=%s", event.id)
        elif kind == PunchType.BREAK_END:
            open_break = current.open_break
            if open_break is not None:
                open_break.end = event
            else:
                _log.debug("Ignoring break_end id=%s with no open break", event.id)
        elif kind == PunchType.CLOCK_OUT:
            current.close(event.timestamp, ShiftEndReason.CLOCK_OUT, event)
            shifts.append(current)
            current = None

    if current is not None:
        current.close(now or now_utc(), ShiftEndReason.OPEN)
        shifts.append(current)

    return shifts
