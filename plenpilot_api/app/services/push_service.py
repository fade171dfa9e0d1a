"""
Push delivery for notifications through Firebase Cloud Messaging.

Every stored notification is mirrored to the target user's device
when the user has registered an FCM token.  The outcome is written
back onto the notification row (``push_sent``, ``fcm_message_id`` or
``push_error``).  Delivery failures are recorded, never raised: the
notification itself stays valid whether or not the push went out.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, messaging

from ..core.config import settings
from ..core.db import get_connection

logger = logging.getLogger(__name__)

ICON_PATH = "/icons/icon-192x192.png"
BRAND_COLOR = "#22c55e"

DISMISS_ACTION = {"action": "dismiss", "title": "Lukk"}


def get_notification_actions(notification_type: Optional[str]) -> List[Dict[str, str]]:
    """Web push action buttons offered for a notification type."""
    if notification_type == "job_tagged":
        primary = {"action": "open_time_entry", "title": "Registrer timer"}
    elif notification_type == "time_entry_reminder":
        primary = {"action": "open_pending", "title": "Se ufullførte"}
    elif notification_type == "service_needed":
        primary = {"action": "open_equipment", "title": "Se utstyr"}
    else:
        primary = {"action": "open_app", "title": "Åpne app"}
    return [primary, dict(DISMISS_ACTION)]


def get_notification_link(notification_type: Optional[str]) -> str:
    """Deep link into the web app for a notification type."""
    app_base = f"{settings.web_app_url.rstrip('/')}/#"
    employee_base = f"{app_base}/employee"
    if notification_type == "job_tagged":
        return f"{employee_base}/timeregistrering"
    if notification_type == "time_entry_reminder":
        return f"{employee_base}/historikk"
    if notification_type == "service_needed":
        return f"{app_base}/admin/vedlikehold"
    return employee_base


def stringify_data(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """FCM data payloads only carry strings; JSON‑encode everything else."""
    if not isinstance(data, dict):
        return {}
    return {
        str(key): value if isinstance(value, str) else json.dumps(value)
        for key, value in data.items()
    }


def build_message(
    token: str,
    notification_id: int,
    title: str,
    body: str,
    notification_type: Optional[str],
    data: Optional[Dict[str, Any]] = None,
) -> messaging.Message:
    """Assemble the FCM message with Android, APNs and web push options."""
    category = notification_type or "general"
    payload = {"notificationId": str(notification_id), "type": category}
    payload.update(stringify_data(data))
    return messaging.Message(
        token=token,
        notification=messaging.Notification(title=title, body=body),
        data=payload,
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(
                icon="ic_notification",
                color=BRAND_COLOR,
                channel_id="default",
                priority="high",
                default_sound=True,
            ),
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    alert=messaging.ApsAlert(title=title, body=body),
                    badge=1,
                    sound="default",
                    category=category,
                ),
            ),
        ),
        webpush=messaging.WebpushConfig(
            notification=messaging.WebpushNotification(
                title=title,
                body=body,
                icon=ICON_PATH,
                badge=ICON_PATH,
                tag=category,
                require_interaction=True,
                actions=[
                    messaging.WebpushNotificationAction(a["action"], a["title"])
                    for a in get_notification_actions(notification_type)
                ],
            ),
            fcm_options=messaging.WebpushFCMOptions(link=get_notification_link(notification_type)),
        ),
    )


def _ensure_firebase_app() -> None:
    """Initialise the Firebase Admin SDK once per process."""
    try:
        firebase_admin.get_app()
    except ValueError:
        options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
        if settings.firebase_credentials:
            cred = credentials.Certificate(settings.firebase_credentials)
        else:
            cred = credentials.ApplicationDefault()
        firebase_admin.initialize_app(cred, options)
        logger.info("Firebase Admin initialized")


def _fcm_send(message: messaging.Message) -> str:
    _ensure_firebase_app()
    return messaging.send(message)


class PushService:
    """Dispatches stored notifications to user devices."""

    # Replaced in tests; takes a Message and returns the FCM message id.
    sender: Callable[[messaging.Message], str] = staticmethod(_fcm_send)

    @classmethod
    async def dispatch(cls, notification_id: int) -> Optional[str]:
        """Send the push for a stored notification.

        Returns the FCM message id on success and ``None`` when the push
        was skipped or failed.  Skips when push is disabled, required
        fields are missing, the user does not exist or has no device
        token.
        """
        if not settings.fcm_enabled:
            logger.debug("Push disabled, notification %s stored only", notification_id)
            return None
        conn = get_connection()
        try:
            row = conn.execute(
                """
                SELECT n.id AS id, n.user_id AS user_id, n.title AS title, n.message AS message,
                       n.type AS type, n.data AS data,
                       u.id AS target_id, u.fcm_token
                FROM notifications n LEFT JOIN users u ON u.id = n.user_id
                WHERE n.id = ?
                """,
                (notification_id,),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            logger.error("Notification %s not found", notification_id)
            return None
        if not row["user_id"] or not row["title"] or not row["message"]:
            logger.error("Notification %s is missing required fields", notification_id)
            return None
        if row["target_id"] is None:
            logger.error("User not found: %s", row["user_id"])
            return None
        if not row["fcm_token"]:
            logger.info("User %s has no FCM token, skipping push notification", row["user_id"])
            return None

        data = json.loads(row["data"]) if row["data"] else {}
        message = build_message(
            token=row["fcm_token"],
            notification_id=row["id"],
            title=row["title"],
            body=row["message"],
            notification_type=row["type"],
            data=data,
        )
        try:
            message_id = await asyncio.to_thread(cls.sender, message)
        except Exception as exc:  # any delivery failure is recorded on the row
            logger.error("Error sending push notification %s: %s", notification_id, exc)
            cls._record_result(notification_id, error=str(exc) or exc.__class__.__name__)
            return None
        logger.info("Sent push notification %s: %s", notification_id, message_id)
        cls._record_result(notification_id, message_id=message_id)
        return message_id

    @staticmethod
    def _record_result(
        notification_id: int,
        message_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        conn = get_connection()
        try:
            if error is None:
                conn.execute(
                    "UPDATE notifications SET push_sent = 1, push_sent_at = CURRENT_TIMESTAMP, "
                    "fcm_message_id = ? WHERE id = ?",
                    (message_id, notification_id),
                )
            else:
                conn.execute(
                    "UPDATE notifications SET push_sent = 0, push_error = ?, "
                    "push_error_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (error, notification_id),
                )
            conn.commit()
        finally:
            conn.close()
