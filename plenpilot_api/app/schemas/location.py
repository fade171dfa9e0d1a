"""
Pydantic models for mowing locations and their weekly status.

A location is mowed every ``maintenance_frequency`` weeks and has its
edges cut every ``edge_cutting_frequency`` weeks, both counted from
``start_week``.  ``LocationWithStatus`` is a derived projection for a
selected ISO week; it is recomputed on every request and never stored.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .time_entry import TimeEntryWithEmployee

LocationStatus = Literal["planlagt", "ikke_utfort", "fullfort"]


class LocationBase(BaseModel):
    name: str = Field(..., min_length=1, example="Solsiden borettslag")
    address: str = Field("", example="Strandveien 12, 7042 Trondheim")
    maintenance_frequency: int = Field(..., ge=1, example=2, description="Mowing cadence in weeks")
    edge_cutting_frequency: int = Field(..., ge=1, example=4, description="Edge cutting cadence in weeks")
    start_week: int = Field(..., ge=1, le=52, example=18, description="ISO week the cadence begins")
    notes: str = Field("", example="Port kode 1234")


class LocationCreate(LocationBase):
    """Schema for creating a location."""
    pass


class LocationRead(LocationBase):
    """Schema for reading a location from the API."""

    id: int
    last_maintenance_week: Optional[int] = None
    last_edge_cutting_week: Optional[int] = None
    is_archived: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class LocationUpdate(BaseModel):
    """Schema for updating a location.

    All fields are optional; only provided fields will be updated.
    """
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    maintenance_frequency: Optional[int] = Field(None, ge=1)
    edge_cutting_frequency: Optional[int] = Field(None, ge=1)
    start_week: Optional[int] = Field(None, ge=1, le=52)
    notes: Optional[str] = None
    last_maintenance_week: Optional[int] = Field(None, ge=1, le=53)
    last_edge_cutting_week: Optional[int] = Field(None, ge=1, le=53)


class TaggedEmployee(BaseModel):
    """A tagged co‑worker resolved against the user records."""

    id: int
    name: str
    email: Optional[str] = None


class LocationWithStatus(LocationRead):
    """A location together with its computed state for one ISO week."""

    status: LocationStatus = "planlagt"
    is_due_for_maintenance_in_selected_week: bool = False
    is_due_for_edge_cutting_in_selected_week: bool = False
    edge_cutting_done_in_selected_week: bool = False
    total_hours: float = 0.0
    time_entries: List[TimeEntryWithEmployee] = Field(default_factory=list)
    tagged_employees: List[TaggedEmployee] = Field(default_factory=list)
