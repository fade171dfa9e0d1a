"""
Pydantic models for in‑app notifications.

Notifications are stored per user and mirrored to the user's device
as a push message when a device token is registered.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

NotificationType = Literal[
    "general",
    "job_tagged",
    "time_entry_reminder",
    "manual_job_reminder",
    "service_needed",
]


class NotificationRead(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType = "general"
    data: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: Optional[datetime] = None
    push_sent: Optional[bool] = None


class BulkNotificationCreate(BaseModel):
    """Request body for sending the same message to several users."""

    user_ids: List[int] = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType = Field("general", example="general")
    custom_data: Dict[str, Any] = Field(default_factory=dict)


class CreatedNotification(BaseModel):
    id: int
    user_id: int


class BulkNotificationResult(BaseModel):
    success: bool
    notifications_created: int
    notifications: List[CreatedNotification]
