"""
Summary numbers for the administrator dashboard.
"""

import logging
from typing import Optional

from ..core.weeks import current_iso_week
from ..schemas.dashboard import DashboardStats
from .location_service import LocationService
from .status_resolver import STATUS_COMPLETED
from .time_entry_service import TimeEntryService

logger = logging.getLogger(__name__)


class DashboardService:
    @classmethod
    async def get_dashboard_stats(cls, week_number: Optional[int] = None, year: Optional[int] = None) -> DashboardStats:
        """Counts for the selected ISO week (current week by default).

        ``remaining_locations`` are locations due this week that are
        not yet completed; ``active_employees`` are employees with
        hours logged this week.
        """
        current_year, current_week = current_iso_week()
        week_number = week_number or current_week
        year = year or current_year

        statuses = await LocationService.get_locations_with_weekly_status(week_number, year)
        weekly_hours = await TimeEntryService.get_weekly_aggregated_hours_by_employee(week_number, year)
        recent = await TimeEntryService.get_recent_time_entries(5)

        completed = [loc for loc in statuses if loc.status == STATUS_COMPLETED]
        remaining = [
            loc for loc in statuses
            if loc.status != STATUS_COMPLETED
            and (loc.is_due_for_maintenance_in_selected_week or loc.is_due_for_edge_cutting_in_selected_week)
        ]
        logger.debug("Dashboard week %s/%s: %s completed, %s remaining", week_number, year, len(completed), len(remaining))
        return DashboardStats(
            week=week_number,
            year=year,
            total_locations=len(statuses),
            remaining_locations=len(remaining),
            completed_this_week=len(completed),
            active_employees=len(weekly_hours),
            recent_activity=recent,
        )
