"""
Employee time-clock endpoints: punch state, clock-in, breaks, clock-out,
own timesheet and settled work hours.
Caller identity comes from the path (authentication is handled upstream).
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timeclock.core.deps import get_db
from timeclock.models.punch_event import PunchType
from timeclock.schemas.punch import PunchEventDto, PunchRequest, PunchStateDto
from timeclock.schemas.report import TimesheetDto, daily_totals_to_dto, shift_to_dto
from timeclock.schemas.work_hours import ClockOutResponse, DailyHoursDto, WorkHoursDto
from timeclock.services import punch_service, report_service
from timeclock.services.duration_aggregator import to_hours
from timeclock.utils.enums import enum_to_str

router = APIRouter()


def _punch(db: Session, employee_id: int, punch_type: PunchType, body: Optional[PunchRequest]):
    payload = body or PunchRequest()
    return punch_service.record_punch(
        db,
        employee_id,
        punch_type,
        labor_category=payload.labor_category,
        work_center=payload.work_center,
        actor_id=payload.actor_id,
    )


@router.get("/{employee_id}/punch-state", response_model=PunchStateDto)
async def punch_state(employee_id: int, db: Session = Depends(get_db)):
    """Current state (initial / working / paused) derived from the employee's entries."""
    state = punch_service.get_punch_state(db, employee_id)
    return PunchStateDto(
        employee_id=employee_id,
        status=enum_to_str(state.status),
        clocked_in_at=state.clocked_in_at,
        labor_category=state.labor_category,
        work_center=state.work_center,
    )


@router.post("/{employee_id}/clock-in", response_model=PunchEventDto, status_code=201)
async def clock_in(employee_id: int, body: Optional[PunchRequest] = None, db: Session = Depends(get_db)):
    """Clock in with a labor category (and optional work center). 400 if already clocked in."""
    event = _punch(db, employee_id, PunchType.CLOCK_IN, body)
    return PunchEventDto.model_validate(event)


@router.post("/{employee_id}/break-start", response_model=PunchEventDto, status_code=201)
async def break_start(employee_id: int, body: Optional[PunchRequest] = None, db: Session = Depends(get_db)):
    event = _punch(db, employee_id, PunchType.BREAK_START, body)
    return PunchEventDto.model_validate(event)


@router.post("/{employee_id}/break-end", response_model=PunchEventDto, status_code=201)
async def break_end(employee_id: int, body: Optional[PunchRequest] = None, db: Session = Depends(get_db)):
    event = _punch(db, employee_id, PunchType.BREAK_END, body)
    return PunchEventDto.model_validate(event)


@router.post("/{employee_id}/clock-out", response_model=ClockOutResponse, status_code=201)
async def clock_out(employee_id: int, body: Optional[PunchRequest] = None, db: Session = Depends(get_db)):
    """
    Clock out and settle work hours. A shift that crossed midnight returns one
    record per day (is_split=true). 400 NO_OPEN_SHIFT when nothing is open.
    """
    result = _punch(db, employee_id, PunchType.CLOCK_OUT, body)
    return ClockOutResponse(
        event=PunchEventDto.model_validate(result.event),
        records=[WorkHoursDto.model_validate(r) for r in result.records],
    )


@router.get("/{employee_id}/timesheet", response_model=TimesheetDto)
async def get_timesheet(
    employee_id: int,
    from_at: Optional[datetime] = Query(None, alias="from", description="Window start (ISO-8601)"),
    to_at: Optional[datetime] = Query(None, alias="to", description="Window end (ISO-8601)"),
    db: Session = Depends(get_db),
):
    """Reconstructed shifts with per-day and total net hours."""
    summary = report_service.timesheet(db, employee_id, from_at, to_at)
    return TimesheetDto(
        employee_id=employee_id,
        shifts=[shift_to_dto(s) for s in summary.shifts],
        daily_totals=daily_totals_to_dto(summary.daily_totals),
        total_hours=to_hours(summary.total),
    )


@router.get("/{employee_id}/work-hours", response_model=List[WorkHoursDto])
async def get_work_hours(
    employee_id: int,
    day: date = Query(..., alias="date", description="Calendar day (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    """Settled work hours of one day, ordered by clock-in."""
    return [WorkHoursDto.model_validate(r) for r in report_service.hours_by_date(db, employee_id, day)]


@router.get("/{employee_id}/work-hours/summary", response_model=List[DailyHoursDto])
async def get_work_hours_summary(
    employee_id: int,
    from_date: date = Query(..., alias="from", description="Start date (YYYY-MM-DD)"),
    to_date: date = Query(..., alias="to", description="End date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    """Settled hours per day in the range."""
    rows = report_service.daily_summary(db, employee_id, from_date, to_date)
    return [DailyHoursDto(date=day, hours=hours) for day, hours in rows]
