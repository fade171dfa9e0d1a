"""
Equipment endpoints for API v1.

Mowers and their service intervals are managed by administrators.
Employees can read the mower list and log usage.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from plenpilot_api.app.core.security import ROLE_ADMIN, get_current_user, require_roles
from plenpilot_api.app.schemas.equipment import (
    MowerCreate,
    MowerRead,
    MowerUpdate,
    MowerUsage,
    ServiceIntervalCreate,
    ServiceIntervalRead,
    ServiceLogRead,
)
from plenpilot_api.app.services.equipment_service import EquipmentService


router = APIRouter()


@router.post("/mowers", response_model=MowerRead, status_code=status.HTTP_201_CREATED)
async def create_mower(
    mower: MowerCreate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> MowerRead:
    return await EquipmentService.add_mower(mower)


@router.get("/mowers", response_model=List[MowerRead])
async def list_mowers(current_user: dict = Depends(get_current_user)) -> List[MowerRead]:
    return await EquipmentService.get_all_mowers()


@router.get("/needing-service", response_model=List[MowerRead])
async def mowers_needing_service(current_user: dict = Depends(get_current_user)) -> List[MowerRead]:
    return await EquipmentService.get_mowers_needing_service()


@router.get("/mowers/{mower_id}", response_model=MowerRead)
async def get_mower(mower_id: int, current_user: dict = Depends(get_current_user)) -> MowerRead:
    mower = await EquipmentService.get_mower_by_id(mower_id)
    if not mower:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mower not found")
    return mower


@router.put("/mowers/{mower_id}", response_model=MowerRead)
async def update_mower(
    mower_id: int,
    updates: MowerUpdate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> MowerRead:
    try:
        return await EquipmentService.update_mower_details(mower_id, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/mowers/{mower_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mower(
    mower_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> None:
    try:
        await EquipmentService.delete_mower(mower_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None


@router.post("/mowers/{mower_id}/usage", response_model=MowerRead)
async def log_usage(
    mower_id: int,
    usage: MowerUsage,
    current_user: dict = Depends(get_current_user),
) -> MowerRead:
    try:
        return await EquipmentService.log_mower_usage(mower_id, usage.hours)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/mowers/{mower_id}/intervals",
    response_model=ServiceIntervalRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_interval(
    mower_id: int,
    interval: ServiceIntervalCreate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> ServiceIntervalRead:
    try:
        return await EquipmentService.add_service_interval(mower_id, interval)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/mowers/{mower_id}/intervals/{interval_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_interval(
    mower_id: int,
    interval_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> None:
    try:
        await EquipmentService.delete_service_interval(mower_id, interval_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None


@router.post("/mowers/{mower_id}/intervals/{interval_id}/reset", response_model=ServiceLogRead)
async def reset_interval(
    mower_id: int,
    interval_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> ServiceLogRead:
    """Record that a service was performed at the mower's current hours."""
    try:
        return await EquipmentService.reset_service_interval(mower_id, interval_id, current_user["user_id"])
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/mowers/{mower_id}/logs", response_model=List[ServiceLogRead])
async def service_logs(
    mower_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> List[ServiceLogRead]:
    return await EquipmentService.get_service_logs(mower_id)
