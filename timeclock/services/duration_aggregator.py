"""
Duration aggregation over reconstructed shifts.

Every interval (a shift, a break) is apportioned to the calendar days it
touches before anything is summed: the part from its start to the end of the
start day, the part from the start of the end day to its end, and whole days
in between. The same decomposition is used when clock-out settles work_hours
rows, so reports and persisted records always agree on "time belonging to a
day".

All functions are pure; identical input gives identical output.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from timeclock.models.punch_event import PunchEvent
from timeclock.services.shift_reconstructor import Shift, reconstruct
from timeclock.utils.datetime_utils import ensure_utc, local_date, next_midnight, start_of_day

_log = logging.getLogger(__name__)

ZERO = timedelta(0)


@dataclass
class ShiftSummary:
    shifts: List[Shift]
    daily_totals: Dict[date, timedelta] = field(default_factory=dict)
    total: timedelta = ZERO


def to_hours(duration: timedelta) -> float:
    return duration.total_seconds() / 3600


def interval_by_day(
    start: datetime,
    end: datetime,
    tz: Optional[ZoneInfo] = None,
) -> Dict[date, timedelta]:
    """
    Split [start, end) into the portion belonging to each calendar day.

    A reversed interval (end before start) is returned as its negative plain
    difference on the start day so callers can detect corrupted data.
    """
    start = ensure_utc(start)
    end = ensure_utc(end)
    first = local_date(start, tz)
    if end <= start:
        return {first: end - start}

    last = local_date(end, tz)
    if first == last:
        return {first: end - start}

    parts = {first: next_midnight(first, tz) - start}
    day = first + timedelta(days=1)
    while day < last:
        # 24h, except on DST transition days
        parts[day] = next_midnight(day, tz) - start_of_day(day, tz)
        day += timedelta(days=1)
    tail = end - start_of_day(last, tz)
    if tail > ZERO:
        parts[last] = tail
    return parts


def interval_duration(start: datetime, end: datetime, tz: Optional[ZoneInfo] = None) -> timedelta:
    """Gross duration of an interval, summed over its per-day parts."""
    return sum(interval_by_day(start, end, tz).values(), ZERO)


def _clip(
    start: datetime,
    end: datetime,
    from_at: Optional[datetime],
    to_at: Optional[datetime],
) -> Tuple[datetime, datetime]:
    if from_at is not None:
        start = max(start, ensure_utc(from_at))
    if to_at is not None:
        end = min(end, ensure_utc(to_at))
    return start, end


def overlaps(shift: Shift, from_at: Optional[datetime] = None, to_at: Optional[datetime] = None) -> bool:
    """True when the shift has time inside [from_at, to_at]."""
    start, end = _clip(shift.start_at, shift.end_at, from_at, to_at)
    return end > start


def shift_breakdown(
    shift: Shift,
    tz: Optional[ZoneInfo] = None,
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
) -> Dict[date, timedelta]:
    """
    Per-day worked time of one shift before clamping: the shift's own per-day
    parts minus the per-day parts of each break.

    While the shift is still open, an unfinished break runs until now. A shift
    that was closed with a break still open (clock-out while paused) only
    loses its finished breaks. Breaks with no positive length are skipped.

    With from_at / to_at, only the time inside that window is counted.
    """
    windowed = from_at is not None or to_at is not None
    start, end = _clip(shift.start_at, shift.end_at, from_at, to_at)
    if windowed and end <= start:
        return {}

    per_day = dict(interval_by_day(start, end, tz))
    for brk in shift.breaks:
        brk_end = brk.end_at
        if brk_end is None:
            if not shift.is_open:
                _log.debug(
                    "Not subtracting unfinished break starting %s: shift closed while paused",
                    brk.start_at.isoformat(),
                )
                continue
            brk_end = shift.end_at
        if brk_end <= brk.start_at:
            _log.debug("Skipping empty or reversed break starting %s", brk.start_at.isoformat())
            continue
        brk_start, brk_end = _clip(brk.start_at, brk_end, from_at, to_at)
        if brk_end <= brk_start:
            continue
        for day, duration in interval_by_day(brk_start, brk_end, tz).items():
            per_day[day] = per_day.get(day, ZERO) - duration
    return dict(sorted(per_day.items()))


def net_duration(shift: Shift, tz: Optional[ZoneInfo] = None) -> timedelta:
    """Gross shift time minus break time, never below zero."""
    net = sum(shift_breakdown(shift, tz).values(), ZERO)
    if net < ZERO:
        _log.warning(
            "Negative net duration clamped to zero: employee_id=%s shift_start=%s net_seconds=%s",
            shift.employee_id, shift.start_at.isoformat(), net.total_seconds(),
        )
        return ZERO
    return net


def daily_portions(
    shift: Shift,
    tz: Optional[ZoneInfo] = None,
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
) -> Dict[date, timedelta]:
    """Net time of one shift per calendar day, each day clamped at zero."""
    portions = {}
    for day, duration in shift_breakdown(shift, tz, from_at, to_at).items():
        if duration < ZERO:
            _log.warning(
                "Negative day portion clamped to zero: employee_id=%s day=%s net_seconds=%s",
                shift.employee_id, day.isoformat(), duration.total_seconds(),
            )
            duration = ZERO
        portions[day] = duration
    return portions


def daily_totals(
    shifts: Iterable[Shift],
    tz: Optional[ZoneInfo] = None,
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
) -> Dict[date, timedelta]:
    """Net worked time per calendar day over all shifts, ordered by day."""
    totals: Dict[date, timedelta] = {}
    for shift in shifts:
        for day, duration in daily_portions(shift, tz, from_at, to_at).items():
            totals[day] = totals.get(day, ZERO) + duration
    return dict(sorted(totals.items()))


def daily_total(shifts: Iterable[Shift], day: date, tz: Optional[ZoneInfo] = None) -> timedelta:
    """Net worked time on one calendar day; a cross-day shift contributes only its part on that day."""
    return sum((daily_portions(s, tz).get(day, ZERO) for s in shifts), ZERO)


def employee_total(shifts: Iterable[Shift], tz: Optional[ZoneInfo] = None) -> timedelta:
    """Sum of the daily totals across every day the shifts touch."""
    return sum(daily_totals(shifts, tz).values(), ZERO)


def summarize_shifts(
    shifts: Iterable[Shift],
    tz: Optional[ZoneInfo] = None,
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
) -> ShiftSummary:
    """
    Totals over already reconstructed shifts. With a window, only shifts that
    reach into it are kept and only their time inside it is counted; shifts
    must come from the full event history so that a shift cut by either end
    of the window keeps its real start and end.
    """
    if from_at is None and to_at is None:
        kept = list(shifts)
    else:
        kept = [s for s in shifts if overlaps(s, from_at, to_at)]
    totals = daily_totals(kept, tz, from_at, to_at)
    return ShiftSummary(shifts=kept, daily_totals=totals, total=sum(totals.values(), ZERO))


def summarize(
    events: Iterable[PunchEvent],
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
    from_at: Optional[datetime] = None,
    to_at: Optional[datetime] = None,
) -> ShiftSummary:
    """Event stream of one employee -> shifts, per-day totals and overall total."""
    return summarize_shifts(reconstruct(events, now=now, tz=tz), tz, from_at, to_at)
