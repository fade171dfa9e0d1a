"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers (auth, users, locations,
time entries, etc.) under a unified prefix.
"""

from fastapi import APIRouter

from .endpoints import (
    auth,
    users,
    locations,
    time_entries,
    equipment,
    notifications,
    season_settings,
    dashboard,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(locations.router, prefix="/locations", tags=["locations"])
router.include_router(time_entries.router, prefix="/time-entries", tags=["time-entries"])
router.include_router(equipment.router, prefix="/equipment", tags=["equipment"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
router.include_router(season_settings.router, prefix="/season-settings", tags=["season-settings"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
