"""
Location endpoints for API v1.

Administrators manage locations; every authenticated user can read
them and the weekly status overview.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from plenpilot_api.app.core.security import ROLE_ADMIN, get_current_user, require_roles
from plenpilot_api.app.core.weeks import current_iso_week
from plenpilot_api.app.schemas.location import (
    LocationCreate,
    LocationRead,
    LocationUpdate,
    LocationWithStatus,
)
from plenpilot_api.app.services.location_service import LocationService


router = APIRouter()


@router.post("/", response_model=LocationRead, status_code=status.HTTP_201_CREATED)
async def create_location(
    location: LocationCreate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> LocationRead:
    return await LocationService.add_location(location)


@router.get("/", response_model=List[LocationRead])
async def list_active_locations(current_user: dict = Depends(get_current_user)) -> List[LocationRead]:
    return await LocationService.get_active_locations()


@router.get("/archived", response_model=List[LocationRead])
async def list_archived_locations(
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> List[LocationRead]:
    return await LocationService.get_archived_locations()


@router.get("/due", response_model=List[LocationRead])
async def list_locations_due(
    week: Optional[int] = Query(None, ge=1, le=53),
    current_user: dict = Depends(get_current_user),
) -> List[LocationRead]:
    """Active locations whose last mowing is at least one cadence ago."""
    return await LocationService.get_locations_due_for_service(week)


@router.get("/weekly-status", response_model=List[LocationWithStatus])
async def weekly_status(
    week: Optional[int] = Query(None, ge=1, le=53),
    year: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user),
) -> List[LocationWithStatus]:
    """Every active location with its status for an ISO week.

    Both ``week`` and ``year`` default to the current ISO week.
    """
    current_year, current_week = current_iso_week()
    try:
        return await LocationService.get_locations_with_weekly_status(week or current_week, year or current_year)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/", status_code=status.HTTP_200_OK)
async def delete_all_locations(current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> dict:
    deleted = await LocationService.delete_all_locations()
    return {"deleted": deleted}


@router.get("/{location_id}", response_model=LocationRead)
async def get_location(location_id: int, current_user: dict = Depends(get_current_user)) -> LocationRead:
    location = await LocationService.get_location_by_id(location_id)
    if not location:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return location


@router.put("/{location_id}", response_model=LocationRead)
async def update_location(
    location_id: int,
    updates: LocationUpdate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> LocationRead:
    try:
        return await LocationService.update_location(location_id, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{location_id}/archive", status_code=status.HTTP_204_NO_CONTENT)
async def archive_location(
    location_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> None:
    try:
        await LocationService.archive_location(location_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None


@router.post("/{location_id}/restore", status_code=status.HTTP_204_NO_CONTENT)
async def restore_location(
    location_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> None:
    try:
        await LocationService.restore_location(location_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location(
    location_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> None:
    try:
        await LocationService.delete_location(location_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None
