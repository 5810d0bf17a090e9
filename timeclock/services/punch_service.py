"""
Employee punch actions: clock-in, break start/end, clock-out.
The punch state (initial / working / paused) is always derived from the stored
events, never cached.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from timeclock.core.errors import InvalidPunch, NoOpenShift
from timeclock.models.punch_event import LaborCategory, PunchEvent, PunchType
from timeclock.services.audit_service import log_audit
from timeclock.services.clock_out_service import ClockOutResult, reconcile_clock_out
from timeclock.services.punch_store import fetch_events, insert_event, unit_of_work
from timeclock.services.shift_reconstructor import Shift, ShiftEndReason, reconstruct
from timeclock.utils.datetime_utils import ensure_utc, now_utc

_log = logging.getLogger(__name__)


class PunchStatus(str, enum.Enum):
    INITIAL = "initial"
    WORKING = "working"
    PAUSED = "paused"


@dataclass
class PunchState:
    status: PunchStatus
    shift: Optional[Shift] = None

    @property
    def labor_category(self) -> Optional[LaborCategory]:
        return self.shift.labor_category if self.shift else None

    @property
    def work_center(self) -> Optional[str]:
        return self.shift.work_center if self.shift else None

    @property
    def clocked_in_at(self) -> Optional[datetime]:
        return self.shift.start_at if self.shift else None


def current_state(events: Iterable[PunchEvent], now: Optional[datetime] = None) -> PunchState:
    """Punch state of one employee from their full event history."""
    return state_from_shifts(reconstruct(events, now=now))


def state_from_shifts(shifts: List[Shift]) -> PunchState:
    if not shifts or shifts[-1].end_reason != ShiftEndReason.OPEN:
        return PunchState(status=PunchStatus.INITIAL)
    shift = shifts[-1]
    status = PunchStatus.PAUSED if shift.open_break is not None else PunchStatus.WORKING
    return PunchState(status=status, shift=shift)


def get_punch_state(db: Session, employee_id: int, now: Optional[datetime] = None) -> PunchState:
    return current_state(fetch_events(db, [employee_id]), now=now)


def _check_transition(state: PunchState, punch_type: PunchType, employee_id: int) -> None:
    if punch_type == PunchType.CLOCK_IN:
        if state.status != PunchStatus.INITIAL:
            raise InvalidPunch("Already clocked in")
    elif state.status == PunchStatus.INITIAL:
        raise NoOpenShift(employee_id, "No active clock-in")
    elif punch_type == PunchType.BREAK_START and state.status == PunchStatus.PAUSED:
        raise InvalidPunch("Break already started")
    elif punch_type == PunchType.BREAK_END and state.status != PunchStatus.PAUSED:
        raise InvalidPunch("No active break")


def record_punch(
    db: Session,
    employee_id: int,
    punch_type: PunchType,
    now: Optional[datetime] = None,
    *,
    labor_category: Optional[LaborCategory] = None,
    work_center: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> Union[PunchEvent, ClockOutResult]:
    """
    Record a punch for the employee at ``now`` (server time by default).

    Clock-out is delegated to reconcile_clock_out and returns its result;
    other punches return the stored event. Labor category and work center are
    only stored on clock-in; later events of the shift inherit them.
    """
    punch_type = PunchType(punch_type)
    now = ensure_utc(now) if now is not None else now_utc()
    actor = actor_id if actor_id is not None else employee_id

    if punch_type == PunchType.CLOCK_OUT:
        return reconcile_clock_out(db, employee_id, now, actor_id=actor)

    state = get_punch_state(db, employee_id, now=now)
    _check_transition(state, punch_type, employee_id)

    if punch_type == PunchType.CLOCK_IN:
        if labor_category is None:
            raise InvalidPunch("Labor category is required for clock-in")
        labor_category = LaborCategory(labor_category)
    else:
        labor_category = None
        work_center = None

    event = PunchEvent(
        employee_id=employee_id,
        event_type=punch_type,
        timestamp=now,
        labor_category=labor_category,
        work_center=work_center,
        is_active=True,
        created_by=actor,
    )
    with unit_of_work(db):
        insert_event(db, event)

    _log.info("Punch recorded: employee_id=%s type=%s at=%s", employee_id, punch_type.value, now.isoformat())
    log_audit(
        db=db,
        actor_id=actor,
        action=f"PUNCH_{punch_type.name}",
        entity_type="time_entries",
        entity_id=event.id,
        meta={
            "timestamp": now,
            "labor_category": labor_category,
            "work_center": work_center,
        },
    )
    return event
