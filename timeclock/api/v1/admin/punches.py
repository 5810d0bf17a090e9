"""
Supervisor time entry endpoints: list, add, edit, soft-delete.
Role checks belong to the upstream gateway; actor_id identifies the supervisor.
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timeclock.core.deps import get_db
from timeclock.schemas.punch import (
    PunchEventDto,
    TimeEntryCreateRequest,
    TimeEntryListResponse,
    TimeEntryUpdateRequest,
)
from timeclock.services import supervisor_service as svc

router = APIRouter()


@router.get("", response_model=TimeEntryListResponse)
async def list_time_entries(
    employee_id: List[int] = Query(..., description="Employee IDs (repeat the parameter)"),
    from_at: Optional[datetime] = Query(None, alias="from"),
    to_at: Optional[datetime] = Query(None, alias="to"),
    include_inactive: bool = Query(False, description="Include eliminated entries"),
    db: Session = Depends(get_db),
):
    """Entries of the given employees, newest first."""
    items = svc.list_entries(db, employee_id, from_at, to_at, include_inactive=include_inactive)
    return TimeEntryListResponse(
        items=[PunchEventDto.model_validate(e) for e in items],
        total=len(items),
    )


@router.post("", response_model=PunchEventDto, status_code=201)
async def add_time_entry(body: TimeEntryCreateRequest, db: Session = Depends(get_db)):
    """Add an entry. Breaks and clock-outs need an active clock-in earlier that day."""
    entry = svc.add_entry(
        db,
        body.actor_id,
        body.employee_id,
        body.event_type,
        body.timestamp,
        labor_category=body.labor_category,
        work_center=body.work_center,
    )
    return PunchEventDto.model_validate(entry)


@router.patch("/{entry_id}", response_model=PunchEventDto)
async def update_time_entry(entry_id: int, body: TimeEntryUpdateRequest, db: Session = Depends(get_db)):
    """Correct an entry; the original timestamp is preserved."""
    entry = svc.update_entry(
        db,
        body.actor_id,
        entry_id,
        timestamp=body.timestamp,
        event_type=body.event_type,
        labor_category=body.labor_category,
        work_center=body.work_center,
    )
    return PunchEventDto.model_validate(entry)


@router.delete("/{entry_id}", response_model=PunchEventDto)
async def delete_time_entry(
    entry_id: int,
    actor_id: int = Query(..., description="Supervisor performing the change"),
    db: Session = Depends(get_db),
):
    """Soft-delete an entry (is_active=false, changes=eliminated)."""
    return PunchEventDto.model_validate(svc.delete_entry(db, actor_id, entry_id))
