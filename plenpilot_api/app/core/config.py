"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API can be started locally without any configuration; in production
override at least ``SECRET_KEY``, ``DATABASE_URL`` and the Firebase
credentials.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "PlenPilot API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Path for the SQLite database.  Relative paths are resolved
    # against the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "plenpilot.db")

    # Time zone used for week calculations and the cleanup schedule.
    # Timezone-aware timestamps are converted to this zone before they
    # are stored.
    timezone: str = os.getenv("TIMEZONE", "Europe/Oslo")

    # Push delivery through Firebase Cloud Messaging.  When disabled,
    # notifications are still stored but no push is attempted.
    fcm_enabled: bool = os.getenv("FCM_ENABLED", "true").lower() in {"1", "true", "yes"}
    firebase_project_id: str = os.getenv("FIREBASE_PROJECT_ID", "")
    # Path to a service account JSON file.  Application Default
    # Credentials are used when empty.
    firebase_credentials: str = os.getenv("FIREBASE_CREDENTIALS", "")
    # Public HTTPS address of the web app; push deep links point here.
    web_app_url: str = os.getenv("WEB_APP_URL", "https://localhost/Lawncare")

    notification_retention_days: int = int(os.getenv("NOTIFICATION_RETENTION_DAYS", "30"))
    # Local hour (0-23) at which old notifications are removed.
    cleanup_hour: int = int(os.getenv("CLEANUP_HOUR", "2"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
