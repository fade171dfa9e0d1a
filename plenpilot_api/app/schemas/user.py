"""
Pydantic models for user data.

Users are either administrators, who configure locations and
equipment, or employees, who log time entries.  Passwords are only
accepted on input and never returned.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["admin", "employee"]


class UserBase(BaseModel):
    email: str = Field(..., example="ola@plenpilot.no")
    name: str = Field(..., min_length=1, example="Ola Nordmann")
    role: Role = Field("employee", example="employee")


class UserCreate(UserBase):
    """Schema for creating a user account."""

    password: str = Field(..., min_length=6, example="strongpassword")


class UserUpdate(BaseModel):
    """Fields an administrator may change; omitted fields are left as is."""

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    role: Optional[Role] = None
    password: Optional[str] = Field(None, min_length=6)
    disabled: Optional[bool] = None


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    disabled: bool = False

    model_config = {
        "from_attributes": True,
    }


class UserLogin(BaseModel):
    email: str
    password: str


class FcmTokenUpdate(BaseModel):
    """Device token registered by the client for push delivery."""

    token: Optional[str] = Field(None, description="FCM registration token; null unregisters the device")
