"""Entry point for the PlenPilot API.

This script launches the FastAPI application with Uvicorn together
with the daily cleanup of old notifications.  The cleanup runs once a
day at ``CLEANUP_HOUR`` (02:00 by default) in the configured time
zone.

Host and port are read from the ``API_HOST`` and ``API_PORT``
environment variables.

Usage:
    python run.py
"""
import asyncio
import logging
import os
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from uvicorn import Config, Server

from plenpilot_api.app.main import app
from plenpilot_api.app.core.config import settings
from plenpilot_api.app.core.errors import ServiceError
from plenpilot_api.app.services.notification_service import NotificationService


logger = logging.getLogger("plenpilot.run")


def seconds_until_next_run(now: Optional[datetime] = None, hour: Optional[int] = None) -> float:
    """Seconds from ``now`` until the next ``hour``:00 in the configured zone."""
    tz = ZoneInfo(settings.timezone)
    now = now.astimezone(tz) if now else datetime.now(tz)
    hour = settings.cleanup_hour if hour is None else hour
    next_run = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if next_run <= now:
        next_run += timedelta(days=1)
    return (next_run - now).total_seconds()


async def run_api() -> None:
    """Start the API using Uvicorn."""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()


async def run_cleanup() -> None:
    """Delete old notifications once a day."""
    while True:
        delay = seconds_until_next_run()
        logger.info("Next notification cleanup in %.0f seconds", delay)
        await asyncio.sleep(delay)
        try:
            deleted = await NotificationService.cleanup_old_notifications()
        except ServiceError as exc:
            logger.error("Notification cleanup failed: %s", exc.message)
            continue
        logger.info("Notification cleanup removed %s notifications", deleted)


async def main() -> None:
    """Run the API and the cleanup schedule concurrently."""
    tasks = [asyncio.create_task(run_api()), asyncio.create_task(run_cleanup())]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    for task in done:
        if exception := task.exception():
            logger.exception("Exception in service", exc_info=exception)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
