"""
Business logic for in‑app notifications.

Notifications are created by other services (employee tagged on a
job, mower service due) or in bulk by administrators.  Creating a
notification triggers push delivery to the user's device.  Old
notifications are removed by a daily cleanup job.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from ..core.config import settings
from ..core.db import MAX_BATCH_WRITES, chunked, get_connection
from ..core.errors import ServiceError
from ..core.security import ROLE_ADMIN
from ..schemas.notification import (
    BulkNotificationCreate,
    BulkNotificationResult,
    CreatedNotification,
    NotificationRead,
)
from .push_service import PushService
from .user_service import UserService

logger = logging.getLogger(__name__)


def _row_to_notification(row: sqlite3.Row) -> NotificationRead:
    return NotificationRead(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        message=row["message"],
        type=row["type"],
        data=json.loads(row["data"]) if row["data"] else {},
        read=bool(row["read"]),
        created_at=row["created_at"],
        push_sent=None if row["push_sent"] is None else bool(row["push_sent"]),
    )


class NotificationService:
    """Service for creating, reading and expiring notifications."""

    @classmethod
    async def add_notification(
        cls,
        user_id: int,
        title: str,
        message: str,
        type: str = "general",
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Store an unread notification and push it to the user's device.

        Returns the notification id.  Push failures are recorded on
        the notification and do not raise.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO notifications (user_id, title, message, type, data) VALUES (?, ?, ?, ?, ?)",
                (user_id, title, message, type, json.dumps(data or {})),
            )
            notification_id = cursor.lastrowid
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error adding notification: %s", exc)
            raise ServiceError("Could not create notification") from exc
        finally:
            conn.close()
        await PushService.dispatch(notification_id)
        return notification_id

    @classmethod
    async def get_unread_notifications(cls, user_id: int) -> List[NotificationRead]:
        """Return the user's unread notifications, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM notifications WHERE user_id = ? AND read = 0 "
                "ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
            return [_row_to_notification(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("Error getting unread notifications: %s", exc)
            raise ServiceError("Could not fetch notifications") from exc
        finally:
            conn.close()

    @classmethod
    async def mark_notification_as_read(cls, notification_id: int, user_id: Optional[int] = None) -> None:
        """Mark a notification as read.

        When ``user_id`` is given the notification must belong to that
        user.  Raises ``ValueError`` if no matching notification exists.
        """
        conn = get_connection()
        try:
            if user_id is None:
                cursor = conn.execute("UPDATE notifications SET read = 1 WHERE id = ?", (notification_id,))
            else:
                cursor = conn.execute(
                    "UPDATE notifications SET read = 1 WHERE id = ? AND user_id = ?",
                    (notification_id, user_id),
                )
            if cursor.rowcount == 0:
                raise ValueError(f"Notification {notification_id} not found")
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def mark_all_notifications_as_read(cls, user_id: int) -> int:
        """Mark every unread notification of the user as read; returns the count."""
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE notifications SET read = 1 WHERE user_id = ? AND read = 0", (user_id,)
            )
            conn.commit()
            return cursor.rowcount
        except sqlite3.Error as exc:
            logger.error("Error marking all notifications as read: %s", exc)
            raise ServiceError("Could not update notifications") from exc
        finally:
            conn.close()

    @classmethod
    async def send_bulk_notifications(
        cls,
        current_user: dict,
        data: BulkNotificationCreate,
    ) -> BulkNotificationResult:
        """Create one notification per user id and push each of them.

        Only administrators may send bulk notifications.  Every user id
        must exist; unknown ids raise ``ValueError`` before anything is
        written.  Rows are inserted in batches of at most
        ``MAX_BATCH_WRITES`` and committed together, so either all
        notifications exist or none do.
        """
        if current_user.get("role") != ROLE_ADMIN:
            raise PermissionError("Only admins can send bulk notifications")
        if not data.user_ids:
            raise ValueError("user_ids must be a non-empty array")
        if not data.title or not data.message:
            raise ValueError("title and message are required")

        known = await UserService.get_users_map(data.user_ids)
        unknown = sorted({user_id for user_id in data.user_ids if user_id not in known})
        if unknown:
            raise ValueError(f"Unknown user ids: {', '.join(str(user_id) for user_id in unknown)}")

        created: List[CreatedNotification] = []
        payload = json.dumps(data.custom_data or {})
        conn = get_connection()
        try:
            cursor = conn.cursor()
            for batch in chunked(data.user_ids, MAX_BATCH_WRITES):
                for user_id in batch:
                    cursor.execute(
                        "INSERT INTO notifications (user_id, title, message, type, data) VALUES (?, ?, ?, ?, ?)",
                        (user_id, data.title, data.message, data.type or "general", payload),
                    )
                    created.append(CreatedNotification(id=cursor.lastrowid, user_id=user_id))
                logger.debug("Queued bulk batch of %s notifications", len(batch))
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error sending bulk notifications: %s", exc)
            raise ServiceError("Failed to send bulk notifications") from exc
        finally:
            conn.close()

        logger.info("Successfully created %s bulk notifications", len(created))
        for item in created:
            await PushService.dispatch(item.id)
        return BulkNotificationResult(
            success=True,
            notifications_created=len(created),
            notifications=created,
        )

    @classmethod
    async def cleanup_old_notifications(cls, days: Optional[int] = None) -> int:
        """Delete notifications older than ``days`` (default from settings).

        Returns the number of deleted notifications.
        """
        days = settings.notification_retention_days if days is None else days
        conn = get_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM notifications WHERE created_at < datetime('now', ?)",
                (f"-{int(days)} days",),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Error cleaning up old notifications: %s", exc)
            raise ServiceError("Could not clean up notifications") from exc
        finally:
            conn.close()
        if cursor.rowcount:
            logger.info("Successfully deleted %s old notifications", cursor.rowcount)
        else:
            logger.info("No old notifications to clean up")
        return cursor.rowcount
