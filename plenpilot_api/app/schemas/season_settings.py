"""
Pydantic models for season settings.

The season is the range of ISO weeks in which mowing takes place for
a given year, together with the default cadence used for new
locations.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SeasonSettingsRead(BaseModel):
    id: Optional[int] = None
    year: int
    start_week: int = 18
    end_week: int = 42
    default_frequency: int = 2
    updated_at: Optional[datetime] = None


class SeasonSettingsUpdate(BaseModel):
    start_week: int = Field(..., ge=1, le=53)
    end_week: int = Field(..., ge=1, le=53)
    default_frequency: int = Field(..., ge=1)

    @model_validator(mode="after")
    def check_week_order(self) -> "SeasonSettingsUpdate":
        if self.start_week > self.end_week:
            raise ValueError("start_week must not be after end_week")
        return self
