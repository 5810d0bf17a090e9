"""
Settled work hours schemas.
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_serializer

from timeclock.models.punch_event import LaborCategory
from timeclock.schemas.punch import PunchEventDto
from timeclock.utils.datetime_utils import iso_local


class WorkHoursDto(BaseModel):
    id: int
    employee_id: int
    date: date
    hours: float
    clock_in: datetime
    clock_out: datetime
    labor_category: Optional[LaborCategory] = None
    work_center: Optional[str] = None
    is_split: bool

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("clock_in", "clock_out", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class ClockOutResponse(BaseModel):
    event: PunchEventDto
    records: List[WorkHoursDto]


class DailyHoursDto(BaseModel):
    date: date
    hours: float
