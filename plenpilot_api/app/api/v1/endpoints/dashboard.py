"""
Administrator dashboard endpoint for API v1.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from plenpilot_api.app.core.security import ROLE_ADMIN, require_roles
from plenpilot_api.app.schemas.dashboard import DashboardStats
from plenpilot_api.app.services.dashboard_service import DashboardService


router = APIRouter()


@router.get("/", response_model=DashboardStats)
async def dashboard_stats(
    week: Optional[int] = Query(None, ge=1, le=53),
    year: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> DashboardStats:
    try:
        return await DashboardService.get_dashboard_stats(week, year)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
