"""
Punch / time entry schemas. All datetimes are returned in the work timezone with offset.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from timeclock.models.punch_event import EntryChange, LaborCategory, PunchType
from timeclock.utils.datetime_utils import iso_local


class PunchRequest(BaseModel):
    """Body for employee punches; labor_category/work_center are only read on clock-in."""
    labor_category: Optional[LaborCategory] = Field(None, description="Required for clock-in")
    work_center: Optional[str] = Field(None, max_length=120)
    actor_id: Optional[int] = Field(None, description="Who performed the punch (defaults to the employee)")


class PunchEventDto(BaseModel):
    id: int
    employee_id: int
    event_type: PunchType
    timestamp: datetime
    labor_category: Optional[LaborCategory] = None
    work_center: Optional[str] = None
    is_active: bool
    edited: bool = False
    changes: Optional[EntryChange] = None
    original_timestamp: Optional[datetime] = None
    created_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("timestamp", "original_timestamp", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class PunchStateDto(BaseModel):
    employee_id: int
    status: str  # initial / working / paused
    clocked_in_at: Optional[datetime] = None
    labor_category: Optional[LaborCategory] = None
    work_center: Optional[str] = None

    @field_serializer("clocked_in_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class TimeEntryCreateRequest(BaseModel):
    """Supervisor: add a time entry for an employee."""
    actor_id: int = Field(..., description="Supervisor performing the change")
    employee_id: int
    event_type: PunchType
    timestamp: datetime
    labor_category: Optional[LaborCategory] = None
    work_center: Optional[str] = Field(None, max_length=120)


class TimeEntryUpdateRequest(BaseModel):
    """Supervisor: correct a time entry. Omitted fields are left unchanged."""
    actor_id: int = Field(..., description="Supervisor performing the change")
    event_type: Optional[PunchType] = None
    timestamp: Optional[datetime] = None
    labor_category: Optional[LaborCategory] = None
    work_center: Optional[str] = Field(None, max_length=120)


class TimeEntryListResponse(BaseModel):
    items: List[PunchEventDto]
    total: int
