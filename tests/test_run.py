from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

import run as runner
from plenpilot_api.app.core.errors import ServiceError
from plenpilot_api.app.services.notification_service import NotificationService
from run import run_cleanup, seconds_until_next_run

OSLO = ZoneInfo("Europe/Oslo")


class StopCleanup(Exception):
    pass


def test_next_cleanup_later_same_day():
    now = datetime(2024, 5, 14, 1, 30, tzinfo=OSLO)
    assert seconds_until_next_run(now, hour=2) == 30 * 60


def test_next_cleanup_tomorrow_after_run_hour():
    now = datetime(2024, 5, 14, 2, 0, tzinfo=OSLO)
    assert seconds_until_next_run(now, hour=2) == 24 * 60 * 60


def test_cleanup_keeps_running_after_store_failure(run, monkeypatch):
    calls = []

    async def flaky_cleanup(days=None):
        calls.append(days)
        if len(calls) == 1:
            raise ServiceError("Kunne ikke rydde varsler")
        if len(calls) == 2:
            return 3
        raise StopCleanup()

    monkeypatch.setattr(runner, "seconds_until_next_run", lambda: 0)
    monkeypatch.setattr(NotificationService, "cleanup_old_notifications", flaky_cleanup)
    with pytest.raises(StopCleanup):
        run(run_cleanup())
    assert len(calls) == 3
