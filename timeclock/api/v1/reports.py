"""
Report endpoints: supervisor overview (live) and settled hours per employee.
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timeclock.core.deps import get_db
from timeclock.schemas.punch import PunchEventDto
from timeclock.schemas.report import EmployeeHoursDto, EmployeeWorkTimeDto, daily_totals_to_dto
from timeclock.services import report_service
from timeclock.services.duration_aggregator import to_hours
from timeclock.utils.enums import enum_to_str

router = APIRouter()


@router.get("/overview", response_model=List[EmployeeWorkTimeDto])
async def overview(
    employee_id: List[int] = Query(..., description="Employee IDs (repeat the parameter)"),
    from_at: Optional[datetime] = Query(None, alias="from"),
    to_at: Optional[datetime] = Query(None, alias="to"),
    include_entries: bool = Query(False, description="Embed the active entries of each employee"),
    db: Session = Depends(get_db),
):
    """
    Worked time per employee recomputed from punch events: window total,
    today, per-day totals and current punch state.
    """
    rows = report_service.employee_overview(db, employee_id, from_at, to_at)
    return [
        EmployeeWorkTimeDto(
            employee_id=row.employee_id,
            status=enum_to_str(row.state.status),
            total_hours=to_hours(row.total),
            today_hours=to_hours(row.today),
            daily_totals=daily_totals_to_dto(row.daily_totals),
            entries=[PunchEventDto.model_validate(e) for e in row.entries] if include_entries else [],
        )
        for row in rows
    ]


@router.get("/hours", response_model=List[EmployeeHoursDto])
async def hours(
    employee_id: List[int] = Query(..., description="Employee IDs (repeat the parameter)"),
    from_date: date = Query(..., alias="from", description="Start date (YYYY-MM-DD)"),
    to_date: date = Query(..., alias="to", description="End date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    """Settled hours per employee over a date range, rounded to 2 decimals."""
    totals = report_service.hours_by_employee(db, employee_id, from_date, to_date)
    return [EmployeeHoursDto(employee_id=k, total_hours=v) for k, v in totals.items()]
