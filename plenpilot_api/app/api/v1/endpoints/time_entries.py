"""
Time entry endpoints for API v1.

Employees submit their own entries and see what they are tagged on;
administrators see recent activity and weekly hour totals.
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from plenpilot_api.app.core.security import ROLE_ADMIN, get_current_user, require_roles
from plenpilot_api.app.schemas.time_entry import (
    TagEmployeeRequest,
    TimeEntryCreate,
    TimeEntryRead,
    TimeEntryWithDetails,
)
from plenpilot_api.app.services.time_entry_service import TimeEntryService


router = APIRouter()


@router.post("/", response_model=TimeEntryRead, status_code=status.HTTP_201_CREATED)
async def create_time_entry(
    entry: TimeEntryCreate,
    current_user: dict = Depends(get_current_user),
) -> TimeEntryRead:
    """Log hours at a location for the current user.

    Tagged co‑workers are notified once the entry is stored.
    """
    try:
        return await TimeEntryService.add_time_entry(entry, current_user["user_id"])
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/recent", response_model=List[TimeEntryWithDetails])
async def recent_time_entries(
    count: int = Query(5, ge=1, le=100),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> List[TimeEntryWithDetails]:
    return await TimeEntryService.get_recent_time_entries(count)


@router.get("/mine", response_model=List[TimeEntryRead])
async def my_time_entries(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    current_user: dict = Depends(get_current_user),
) -> List[TimeEntryRead]:
    return await TimeEntryService.get_time_entries_for_employee(current_user["user_id"], start, end)


@router.get("/pending", response_model=List[TimeEntryRead])
async def pending_time_entries(current_user: dict = Depends(get_current_user)) -> List[TimeEntryRead]:
    """Jobs the current user is tagged on but has not logged hours for yet."""
    return await TimeEntryService.get_pending_time_entries_for_employee(current_user["user_id"])


@router.get("/location/{location_id}", response_model=List[TimeEntryRead])
async def location_time_entries(
    location_id: int,
    week: Optional[int] = Query(None, ge=1, le=53),
    year: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user),
) -> List[TimeEntryRead]:
    try:
        return await TimeEntryService.get_time_entries_for_location(location_id, week, year)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/weekly-hours")
async def weekly_hours(
    week: Optional[int] = Query(None, ge=1, le=53),
    year: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> Dict[int, float]:
    """Hours per employee id for an ISO week (current week by default)."""
    try:
        return await TimeEntryService.get_weekly_aggregated_hours_by_employee(week, year)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{time_entry_id}/tags", status_code=status.HTTP_204_NO_CONTENT)
async def tag_employee(
    time_entry_id: int,
    payload: TagEmployeeRequest,
    current_user: dict = Depends(get_current_user),
) -> None:
    try:
        await TimeEntryService.tag_employee_for_time_entry(time_entry_id, payload.employee_id, current_user)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None
