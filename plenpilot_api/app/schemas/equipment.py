"""
Pydantic models for mowers, their service intervals and service logs.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ServiceIntervalCreate(BaseModel):
    description: str = Field(..., min_length=1, example="Oljeskift")
    hour_interval: float = Field(..., gt=0, example=50)


class ServiceIntervalRead(ServiceIntervalCreate):
    id: int
    mower_id: int
    last_reset_hours: float = 0
    last_reset_date: Optional[datetime] = None
    last_reset_by: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class MowerCreate(BaseModel):
    name: str = Field(..., min_length=1, example="Klipper 1")
    model: str = Field("", example="Husqvarna R 316TsX")
    serial_number: str = Field("", example="HQ-2231-88")
    service_intervals: List[ServiceIntervalCreate] = Field(default_factory=list)


class MowerUpdate(BaseModel):
    """Schema for updating mower details; intervals are managed separately."""

    name: Optional[str] = Field(None, min_length=1)
    model: Optional[str] = None
    serial_number: Optional[str] = None


class MowerRead(BaseModel):
    id: int
    name: str
    model: str = ""
    serial_number: str = ""
    total_hours: float = 0
    service_intervals: List[ServiceIntervalRead] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class MowerUsage(BaseModel):
    hours: float = Field(..., gt=0)


class ServiceLogRead(BaseModel):
    id: int
    mower_id: int
    service_interval_id: Optional[int] = None
    performed_by: str
    hours_at_service: float
    date: Optional[datetime] = None
    notes: Optional[str] = None
