"""
Season settings endpoints for API v1.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from plenpilot_api.app.core.security import ROLE_ADMIN, get_current_user, require_roles
from plenpilot_api.app.schemas.season_settings import SeasonSettingsRead, SeasonSettingsUpdate
from plenpilot_api.app.services.season_settings_service import SeasonSettingsService


router = APIRouter()


@router.get("/", response_model=SeasonSettingsRead)
async def get_season_settings(
    year: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user),
) -> SeasonSettingsRead:
    return await SeasonSettingsService.get_season_settings(year)


@router.put("/", response_model=SeasonSettingsRead)
async def update_season_settings(
    payload: SeasonSettingsUpdate,
    year: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> SeasonSettingsRead:
    return await SeasonSettingsService.update_season_settings(payload, year)
