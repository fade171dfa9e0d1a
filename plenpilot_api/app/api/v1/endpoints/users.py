"""
User administration endpoints for API v1.

All routes require the ``admin`` role, except the employee list
which employees need to tag co‑workers on a time entry.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from plenpilot_api.app.core.security import ROLE_ADMIN, get_current_user, require_roles
from plenpilot_api.app.schemas.user import UserCreate, UserRead, UserUpdate
from plenpilot_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user: UserCreate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> UserRead:
    try:
        return await UserService.create_user(user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[UserRead])
async def list_users(current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> List[UserRead]:
    return await UserService.list_users()


@router.get("/employees", response_model=List[UserRead])
async def list_employees(current_user: dict = Depends(get_current_user)) -> List[UserRead]:
    """Employees ordered by name."""
    return await UserService.get_all_employees()


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> UserRead:
    user = await UserService.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    updates: UserUpdate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> UserRead:
    try:
        return await UserService.update_user(user_id, updates)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> None:
    """Delete a user.  Administrators cannot delete their own account."""
    if current_user.get("user_id") == user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    try:
        await UserService.delete_user(user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None
