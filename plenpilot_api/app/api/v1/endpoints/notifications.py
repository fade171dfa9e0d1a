"""
Notification endpoints for API v1.

Users read and acknowledge their own notifications.  Administrators
can send the same notification to several users and trigger the
cleanup of old notifications manually.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from plenpilot_api.app.core.security import ROLE_ADMIN, get_current_user, require_roles
from plenpilot_api.app.schemas.notification import (
    BulkNotificationCreate,
    BulkNotificationResult,
    NotificationRead,
)
from plenpilot_api.app.services.notification_service import NotificationService


router = APIRouter()


@router.get("/unread", response_model=List[NotificationRead])
async def unread_notifications(current_user: dict = Depends(get_current_user)) -> List[NotificationRead]:
    return await NotificationService.get_unread_notifications(current_user["user_id"])


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(notification_id: int, current_user: dict = Depends(get_current_user)) -> None:
    try:
        await NotificationService.mark_notification_as_read(notification_id, current_user["user_id"])
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None


@router.post("/read-all")
async def mark_all_read(current_user: dict = Depends(get_current_user)) -> dict:
    updated = await NotificationService.mark_all_notifications_as_read(current_user["user_id"])
    return {"updated": updated}


@router.post("/bulk", response_model=BulkNotificationResult, status_code=status.HTTP_201_CREATED)
async def send_bulk(
    payload: BulkNotificationCreate,
    current_user: dict = Depends(get_current_user),
) -> BulkNotificationResult:
    """Send one notification to each of ``user_ids`` (admins only)."""
    try:
        return await NotificationService.send_bulk_notifications(current_user, payload)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/cleanup")
async def cleanup(
    days: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> dict:
    deleted = await NotificationService.cleanup_old_notifications(days)
    return {"deleted": deleted}
