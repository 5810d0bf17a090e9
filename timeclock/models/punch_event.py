"""
Punch event model (time_entries): one clock action by one employee.
Rows are never deleted; supervisors soft-delete with is_active=False.
"""
from sqlalchemy import Boolean, Column, Integer, DateTime, String, Enum as SQLEnum
from sqlalchemy.sql import func
import enum
from timeclock.db.base import Base


class PunchType(str, enum.Enum):
    CLOCK_IN = "clock_in"
    BREAK_START = "break_start"
    BREAK_END = "break_end"
    CLOCK_OUT = "clock_out"


class LaborCategory(str, enum.Enum):
    SHIFT = "shift"
    COORDINATION = "coordination"
    TRAINING = "training"
    SUBSTITUTION = "substitution"
    OTHER = "other"


class EntryChange(str, enum.Enum):
    EDITED = "edited"
    ELIMINATED = "eliminated"


class PunchEvent(Base):
    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    event_type = Column(SQLEnum(PunchType), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)  # UTC
    labor_category = Column(SQLEnum(LaborCategory), nullable=True)  # clock_in only
    work_center = Column(String, nullable=True)  # clock_in only
    is_active = Column(Boolean, nullable=False, default=True)
    changes = Column(SQLEnum(EntryChange), nullable=True)
    original_timestamp = Column(DateTime(timezone=True), nullable=True)  # first value before any edit
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    @property
    def edited(self) -> bool:
        return self.changes == EntryChange.EDITED

    def __repr__(self) -> str:
        return (
            f"<PunchEvent id={self.id} employee_id={self.employee_id} "
            f"type={getattr(self.event_type, 'value', self.event_type)} at={self.timestamp}>"
        )
