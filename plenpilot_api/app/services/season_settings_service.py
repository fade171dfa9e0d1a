"""
Business logic for season settings.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.config import settings
from ..core.db import get_connection
from ..core.errors import ServiceError
from ..schemas.season_settings import SeasonSettingsRead, SeasonSettingsUpdate

logger = logging.getLogger(__name__)


def _current_year() -> int:
    return datetime.now(ZoneInfo(settings.timezone)).year


class SeasonSettingsService:
    """Per‑year mowing season and default cadence."""

    @classmethod
    async def get_season_settings(cls, year: Optional[int] = None) -> SeasonSettingsRead:
        """Return the latest settings for ``year`` or the defaults when none are stored."""
        year = year or _current_year()
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM season_settings WHERE year = ? ORDER BY updated_at DESC, id DESC LIMIT 1",
                (year,),
            ).fetchone()
        except sqlite3.Error as exc:
            logger.error("Error getting season settings: %s", exc)
            raise ServiceError("Kunne ikke hente sesonginnstillinger") from exc
        finally:
            conn.close()
        if not row:
            return SeasonSettingsRead(year=year)
        return SeasonSettingsRead(**{key: row[key] for key in row.keys()})

    @classmethod
    async def update_season_settings(
        cls,
        data: SeasonSettingsUpdate,
        year: Optional[int] = None,
    ) -> SeasonSettingsRead:
        """Create or update the settings for ``year``."""
        year = year or _current_year()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            existing = cursor.execute(
                "SELECT id FROM season_settings WHERE year = ? ORDER BY id LIMIT 1", (year,)
            ).fetchone()
            if existing:
                cursor.execute(
                    "UPDATE season_settings SET start_week = ?, end_week = ?, default_frequency = ?, "
                    "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (data.start_week, data.end_week, data.default_frequency, existing["id"]),
                )
            else:
                cursor.execute(
                    "INSERT INTO season_settings (year, start_week, end_week, default_frequency) VALUES (?, ?, ?, ?)",
                    (year, data.start_week, data.end_week, data.default_frequency),
                )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error updating season settings: %s", exc)
            raise ServiceError("Kunne ikke oppdatere sesonginnstillinger") from exc
        finally:
            conn.close()
        logger.info("Season settings for %s updated", year)
        return await cls.get_season_settings(year)
