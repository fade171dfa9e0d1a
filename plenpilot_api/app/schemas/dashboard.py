"""
Pydantic model for the administrator dashboard summary.
"""

from typing import List

from pydantic import BaseModel, Field

from .time_entry import TimeEntryWithDetails


class DashboardStats(BaseModel):
    week: int
    year: int
    total_locations: int
    remaining_locations: int
    completed_this_week: int
    active_employees: int
    recent_activity: List[TimeEntryWithDetails] = Field(default_factory=list)
