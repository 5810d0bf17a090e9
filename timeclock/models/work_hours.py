"""
Settled work hours, one row per employee per calendar day touched by a shift.
"""
from sqlalchemy import Boolean, Column, Integer, Date, DateTime, Float, String, Enum as SQLEnum
from sqlalchemy.sql import func
from timeclock.db.base import Base
from timeclock.models.punch_event import LaborCategory


class WorkHours(Base):
    __tablename__ = "work_hours"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)  # calendar day in WORK_TIMEZONE
    hours = Column(Float, nullable=False)
    clock_in = Column(DateTime(timezone=True), nullable=False)  # portion of the shift on this day
    clock_out = Column(DateTime(timezone=True), nullable=False)
    labor_category = Column(SQLEnum(LaborCategory), nullable=True)
    work_center = Column(String, nullable=True)
    is_split = Column(Boolean, nullable=False, default=False)  # one of several day halves
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
