import pytest

from plenpilot_api.app.core.config import settings
from plenpilot_api.app.core.db import get_connection
from plenpilot_api.app.core.errors import ServiceError
from plenpilot_api.app.schemas.notification import BulkNotificationCreate
from plenpilot_api.app.services import notification_service
from plenpilot_api.app.services.notification_service import NotificationService
from plenpilot_api.app.services.push_service import PushService
from plenpilot_api.app.services.user_service import UserService


@pytest.fixture()
def sent(monkeypatch):
    messages = []

    def fake_sender(message):
        messages.append(message)
        return f"projects/plenpilot/messages/{len(messages)}"

    monkeypatch.setattr(settings, "fcm_enabled", True)
    monkeypatch.setattr(PushService, "sender", fake_sender)
    return messages


def push_columns(notification_id):
    conn = get_connection()
    try:
        return conn.execute(
            "SELECT push_sent, push_sent_at, push_error, fcm_message_id FROM notifications WHERE id = ?",
            (notification_id,),
        ).fetchone()
    finally:
        conn.close()


def test_add_and_read_notifications(run, make_user):
    user = make_user()
    first = run(NotificationService.add_notification(user.id, "Hei", "Første"))
    second = run(NotificationService.add_notification(user.id, "Hei", "Andre", data={"x": 1}))
    unread = run(NotificationService.get_unread_notifications(user.id))
    assert {n.id for n in unread} == {first, second}
    assert all(n.type == "general" and not n.read for n in unread)

    run(NotificationService.mark_notification_as_read(first, user.id))
    assert [n.id for n in run(NotificationService.get_unread_notifications(user.id))] == [second]

    assert run(NotificationService.mark_all_notifications_as_read(user.id)) == 1
    assert run(NotificationService.get_unread_notifications(user.id)) == []


def test_mark_read_checks_owner(run, make_user):
    owner, other = make_user(), make_user()
    notification_id = run(NotificationService.add_notification(owner.id, "Hei", "Melding"))
    with pytest.raises(ValueError):
        run(NotificationService.mark_notification_as_read(notification_id, other.id))
    with pytest.raises(ValueError):
        run(NotificationService.mark_notification_as_read(9999))


def test_push_is_skipped_without_device_token(run, make_user, sent):
    user = make_user()
    notification_id = run(NotificationService.add_notification(user.id, "Hei", "Melding"))
    assert sent == []
    assert push_columns(notification_id)["push_sent"] is None


def test_push_is_skipped_when_disabled(run, make_user, monkeypatch):
    calls = []
    monkeypatch.setattr(PushService, "sender", lambda message: calls.append(message))
    user = make_user()
    run(UserService.set_fcm_token(user.id, "token-123"))
    run(NotificationService.add_notification(user.id, "Hei", "Melding"))
    assert calls == []


def test_push_success_is_recorded(run, make_user, sent):
    user = make_user()
    run(UserService.set_fcm_token(user.id, "device-token"))
    notification_id = run(NotificationService.add_notification(
        user.id, "Du har blitt tagget i en jobb", "Parken", type="job_tagged",
        data={"locationId": 3, "locationName": "Parken"},
    ))
    [message] = sent
    assert message.token == "device-token"
    assert message.data == {
        "notificationId": str(notification_id),
        "type": "job_tagged",
        "locationId": "3",
        "locationName": "Parken",
    }
    assert message.webpush.fcm_options.link.endswith("/#/employee/timeregistrering")
    assert [a.action for a in message.webpush.notification.actions] == ["open_time_entry", "dismiss"]
    assert message.apns.payload.aps.category == "job_tagged"
    assert message.android.priority == "high"

    row = push_columns(notification_id)
    assert row["push_sent"] == 1
    assert row["push_sent_at"] is not None
    assert row["fcm_message_id"] == "projects/plenpilot/messages/1"


def test_push_failure_is_recorded_and_not_raised(run, make_user, monkeypatch):
    def failing_sender(message):
        raise RuntimeError("registration-token-not-registered")

    monkeypatch.setattr(settings, "fcm_enabled", True)
    monkeypatch.setattr(PushService, "sender", failing_sender)
    user = make_user()
    run(UserService.set_fcm_token(user.id, "token-123"))
    notification_id = run(NotificationService.add_notification(user.id, "Hei", "Melding"))
    row = push_columns(notification_id)
    assert row["push_sent"] == 0
    assert row["push_error"] == "registration-token-not-registered"
    assert len(run(NotificationService.get_unread_notifications(user.id))) == 1


def test_bulk_notifications_require_admin(run, make_user):
    admin = make_user("Sjef", role="admin")
    employee = make_user()
    payload = BulkNotificationCreate(user_ids=[admin.id], title="Hei", message="Alle sammen")
    with pytest.raises(PermissionError):
        run(NotificationService.send_bulk_notifications({"role": "employee", "user_id": employee.id}, payload))


def test_bulk_notifications_written_in_batches(run, make_user, monkeypatch, sent):
    monkeypatch.setattr(notification_service, "MAX_BATCH_WRITES", 2)
    admin = make_user("Sjef", role="admin")
    users = [make_user() for _ in range(3)]
    for user in users:
        run(UserService.set_fcm_token(user.id, "token-123"))
    result = run(NotificationService.send_bulk_notifications(
        {"role": "admin", "user_id": admin.id},
        BulkNotificationCreate(
            user_ids=[u.id for u in users],
            title="Regn i morgen",
            message="Ingen klipping",
            custom_data={"day": "fredag"},
        ),
    ))
    assert result.success
    assert result.notifications_created == 3
    assert [n.user_id for n in result.notifications] == [u.id for u in users]
    assert len(sent) == 3
    for user in users:
        [notification] = run(NotificationService.get_unread_notifications(user.id))
        assert notification.data == {"day": "fredag"}


def count_notifications():
    conn = get_connection()
    try:
        return conn.execute("SELECT COUNT(*) FROM notifications").fetchone()[0]
    finally:
        conn.close()


def test_bulk_notifications_reject_unknown_users(run, make_user, monkeypatch, sent):
    monkeypatch.setattr(notification_service, "MAX_BATCH_WRITES", 2)
    admin = make_user("Sjef", role="admin")
    users = [make_user() for _ in range(2)]
    with pytest.raises(ValueError, match="424242"):
        run(NotificationService.send_bulk_notifications(
            {"role": "admin", "user_id": admin.id},
            BulkNotificationCreate(user_ids=[u.id for u in users] + [424242], title="Hei", message="Ukjent"),
        ))
    assert count_notifications() == 0
    assert sent == []


def test_bulk_notifications_store_failure_writes_nothing(run, make_user, monkeypatch, sent):
    monkeypatch.setattr(notification_service, "MAX_BATCH_WRITES", 2)
    admin = make_user("Sjef", role="admin")
    users = [make_user() for _ in range(2)]
    ids = [u.id for u in users] + [424242]

    async def every_id_known(user_ids):
        return {user_id: None for user_id in user_ids}

    monkeypatch.setattr(UserService, "get_users_map", every_id_known)
    with pytest.raises(ServiceError):
        run(NotificationService.send_bulk_notifications(
            {"role": "admin", "user_id": admin.id},
            BulkNotificationCreate(user_ids=ids, title="Hei", message="Ukjent"),
        ))
    assert count_notifications() == 0
    assert sent == []


def test_cleanup_removes_only_old_notifications(run, make_user):
    user = make_user()
    old = run(NotificationService.add_notification(user.id, "Gammel", "Melding"))
    fresh = run(NotificationService.add_notification(user.id, "Ny", "Melding"))
    conn = get_connection()
    try:
        conn.execute("UPDATE notifications SET created_at = datetime('now', '-31 days') WHERE id = ?", (old,))
        conn.commit()
    finally:
        conn.close()
    assert run(NotificationService.cleanup_old_notifications()) == 1
    assert [n.id for n in run(NotificationService.get_unread_notifications(user.id))] == [fresh]
    assert run(NotificationService.cleanup_old_notifications()) == 0

