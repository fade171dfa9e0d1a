"""
Pydantic models for time entries.

A time entry records the hours one employee spent at one location.
Entries are created once per submission and not modified afterwards,
except for additional tagged co‑workers.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TimeEntryCreate(BaseModel):
    """Payload submitted by an employee after finishing a job."""

    location_id: int = Field(..., example=1)
    date: Optional[datetime] = Field(None, description="When the work was done; defaults to now")
    hours: float = Field(..., gt=0, example=1.5)
    edge_cutting_done: bool = Field(False, example=False)
    mower_id: Optional[int] = Field(None, example=3)
    notes: str = Field("", example="Klippet rundt lekeplassen")
    tagged_employee_ids: List[int] = Field(default_factory=list, example=[4, 7])


class TimeEntryRead(BaseModel):
    id: int
    location_id: int
    employee_id: int
    date: datetime
    hours: float
    edge_cutting_done: bool = False
    mower_id: Optional[int] = None
    notes: str = ""
    tagged_employee_ids: List[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class TimeEntryWithEmployee(TimeEntryRead):
    """Time entry enriched with the author's display name."""

    employee_name: str


class TimeEntryWithDetails(TimeEntryWithEmployee):
    """Time entry enriched with both author and location names."""

    location_name: str


class TagEmployeeRequest(BaseModel):
    employee_id: int
