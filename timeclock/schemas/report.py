"""
Report schemas (live figures from punch events, settled figures from work_hours).
Durations are expressed in decimal hours.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, field_serializer

from timeclock.models.punch_event import LaborCategory
from timeclock.schemas.punch import PunchEventDto
from timeclock.services.duration_aggregator import net_duration, to_hours
from timeclock.services.shift_reconstructor import Shift
from timeclock.schemas.work_hours import DailyHoursDto
from timeclock.utils.datetime_utils import iso_local
from timeclock.utils.enums import enum_to_str


class BreakDto(BaseModel):
    start_at: datetime
    end_at: Optional[datetime] = None

    @field_serializer("start_at", "end_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class ShiftDto(BaseModel):
    employee_id: int
    start_at: datetime
    end_at: datetime
    end_reason: str  # clock_out / forced_day_end / open
    labor_category: Optional[LaborCategory] = None
    work_center: Optional[str] = None
    breaks: List[BreakDto] = []
    net_hours: float

    @field_serializer("start_at", "end_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class TimesheetDto(BaseModel):
    employee_id: int
    shifts: List[ShiftDto]
    daily_totals: List[DailyHoursDto]
    total_hours: float


class EmployeeWorkTimeDto(BaseModel):
    employee_id: int
    status: str
    total_hours: float
    today_hours: float
    daily_totals: List[DailyHoursDto]
    entries: List[PunchEventDto] = []


class EmployeeHoursDto(BaseModel):
    employee_id: int
    total_hours: float


def daily_totals_to_dto(totals) -> List[DailyHoursDto]:
    return [DailyHoursDto(date=day, hours=to_hours(duration)) for day, duration in totals.items()]


def shift_to_dto(shift: Shift) -> ShiftDto:
    return ShiftDto(
        employee_id=shift.employee_id,
        start_at=shift.start_at,
        end_at=shift.end_at,
        end_reason=enum_to_str(shift.end_reason),
        labor_category=shift.labor_category,
        work_center=shift.work_center,
        breaks=[BreakDto(start_at=b.start_at, end_at=b.end_at) for b in shift.breaks],
        net_hours=to_hours(net_duration(shift)),
    )
