"""
Business logic for mowers and their service intervals.

Every mower accumulates running hours from time entries and manual
usage logs.  A service interval is due once the hours since its last
reset reach ``hour_interval``; resetting it writes a service log.
"""

import logging
import sqlite3
from collections import defaultdict
from typing import Dict, List, Optional

from ..core.db import fetch_in_chunks, get_connection, select_by_ids
from ..core.errors import ServiceError
from ..schemas.equipment import (
    MowerCreate,
    MowerRead,
    MowerUpdate,
    ServiceIntervalCreate,
    ServiceIntervalRead,
    ServiceLogRead,
)

logger = logging.getLogger(__name__)

MOWER_COLUMNS = "id, name, model, serial_number, total_hours, created_at, updated_at"
INTERVAL_COLUMNS = (
    "id, mower_id, description, hour_interval, last_reset_hours, last_reset_date, last_reset_by, created_at"
)


def _row_to_interval(row: sqlite3.Row) -> ServiceIntervalRead:
    return ServiceIntervalRead(**{key: row[key] for key in row.keys()})


def _row_to_mower(row: sqlite3.Row, intervals: Optional[List[ServiceIntervalRead]] = None) -> MowerRead:
    return MowerRead(
        id=row["id"],
        name=row["name"],
        model=row["model"],
        serial_number=row["serial_number"],
        total_hours=row["total_hours"],
        service_intervals=intervals or [],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def needs_service(mower: MowerRead) -> bool:
    """True when any interval has run for at least its hour interval."""
    return any(
        mower.total_hours - interval.last_reset_hours >= interval.hour_interval
        for interval in mower.service_intervals
    )


async def _fetch_intervals_chunk(mower_ids: List[int]) -> List[sqlite3.Row]:
    return select_by_ids("service_intervals", INTERVAL_COLUMNS, mower_ids, key="mower_id")


class EquipmentService:
    """Service for mowers, service intervals and service logs."""

    @classmethod
    async def add_mower(cls, data: MowerCreate) -> MowerRead:
        """Register a mower at zero hours together with its initial intervals."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO mowers (name, model, serial_number) VALUES (?, ?, ?)",
                (data.name, data.model, data.serial_number),
            )
            mower_id = cursor.lastrowid
            cursor.executemany(
                "INSERT INTO service_intervals (mower_id, description, hour_interval) VALUES (?, ?, ?)",
                [(mower_id, i.description, i.hour_interval) for i in data.service_intervals],
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error adding mower: %s", exc)
            raise ServiceError("Kunne ikke legge til gressklipper") from exc
        finally:
            conn.close()
        logger.info("Added mower %s (%s)", mower_id, data.name)
        return await cls.get_mower_by_id(mower_id)

    @classmethod
    async def get_all_mowers(cls) -> List[MowerRead]:
        """All mowers ordered by name, with intervals attached in one batched lookup."""
        conn = get_connection()
        try:
            rows = conn.execute(f"SELECT {MOWER_COLUMNS} FROM mowers ORDER BY name").fetchall()
        finally:
            conn.close()
        interval_rows = await fetch_in_chunks([row["id"] for row in rows], _fetch_intervals_chunk)
        intervals: Dict[int, List[ServiceIntervalRead]] = defaultdict(list)
        for interval_row in interval_rows:
            intervals[interval_row["mower_id"]].append(_row_to_interval(interval_row))
        return [_row_to_mower(row, intervals.get(row["id"])) for row in rows]

    @classmethod
    async def get_mower_by_id(cls, mower_id: int) -> Optional[MowerRead]:
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {MOWER_COLUMNS} FROM mowers WHERE id = ?", (mower_id,)).fetchone()
            if not row:
                return None
            interval_rows = conn.execute(
                f"SELECT {INTERVAL_COLUMNS} FROM service_intervals WHERE mower_id = ? ORDER BY id",
                (mower_id,),
            ).fetchall()
            return _row_to_mower(row, [_row_to_interval(r) for r in interval_rows])
        finally:
            conn.close()

    @classmethod
    async def update_mower_details(cls, mower_id: int, updates: MowerUpdate) -> MowerRead:
        values = updates.model_dump(exclude_unset=True, exclude_none=True)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM mowers WHERE id = ?", (mower_id,)).fetchone():
                raise ValueError(f"Mower {mower_id} not found")
            if values:
                assignments = ", ".join(f"{key} = ?" for key in values)
                cursor.execute(
                    f"UPDATE mowers SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*values.values(), mower_id),
                )
                conn.commit()
        finally:
            conn.close()
        return await cls.get_mower_by_id(mower_id)

    @classmethod
    async def delete_mower(cls, mower_id: int) -> None:
        """Delete a mower after removing its service intervals and logs."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM service_logs WHERE mower_id = ?", (mower_id,))
            cursor.execute("DELETE FROM service_intervals WHERE mower_id = ?", (mower_id,))
            cursor.execute("DELETE FROM mowers WHERE id = ?", (mower_id,))
            if cursor.rowcount == 0:
                conn.rollback()
                raise ValueError(f"Mower {mower_id} not found")
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error deleting mower: %s", exc)
            raise ServiceError("Kunne ikke slette gressklipperen") from exc
        finally:
            conn.close()

    @classmethod
    async def log_mower_usage(cls, mower_id: int, hours: float) -> MowerRead:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE mowers SET total_hours = total_hours + ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (hours, mower_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Mower {mower_id} not found")
            conn.commit()
        finally:
            conn.close()
        return await cls.get_mower_by_id(mower_id)

    @classmethod
    async def get_mowers_needing_service(cls) -> List[MowerRead]:
        return [mower for mower in await cls.get_all_mowers() if needs_service(mower)]

    @classmethod
    async def reset_service_interval(cls, mower_id: int, interval_id: int, user_id: int) -> ServiceLogRead:
        """Mark an interval as serviced at the mower's current hours.

        The resetting user's name is stored on the interval and a
        service log entry is written.
        """
        from .user_service import UserService

        user = await UserService.get_user_by_id(user_id)
        user_name = user.name if user else str(user_id)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            mower = cursor.execute("SELECT total_hours FROM mowers WHERE id = ?", (mower_id,)).fetchone()
            if not mower:
                raise ValueError("Mower not found")
            current_hours = mower["total_hours"]
            cursor.execute(
                "UPDATE service_intervals SET last_reset_hours = ?, last_reset_date = CURRENT_TIMESTAMP, "
                "last_reset_by = ? WHERE id = ? AND mower_id = ?",
                (current_hours, user_name, interval_id, mower_id),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise ValueError("Service interval not found")
            cursor.execute(
                "INSERT INTO service_logs (mower_id, service_interval_id, performed_by, hours_at_service) "
                "VALUES (?, ?, ?, ?)",
                (mower_id, interval_id, user_name, current_hours),
            )
            log_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute("SELECT * FROM service_logs WHERE id = ?", (log_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Service interval %s on mower %s reset by %s", interval_id, mower_id, user_name)
        return ServiceLogRead(**{key: row[key] for key in row.keys()})

    @classmethod
    async def add_service_interval(cls, mower_id: int, data: ServiceIntervalCreate) -> ServiceIntervalRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO service_intervals (mower_id, description, hour_interval) VALUES (?, ?, ?)",
                (mower_id, data.description, data.hour_interval),
            )
            interval_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute(
                f"SELECT {INTERVAL_COLUMNS} FROM service_intervals WHERE id = ?", (interval_id,)
            ).fetchone()
            return _row_to_interval(row)
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ValueError(f"Mower {mower_id} not found") from exc
        finally:
            conn.close()

    @classmethod
    async def delete_service_interval(cls, mower_id: int, interval_id: int) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM service_intervals WHERE id = ? AND mower_id = ?", (interval_id, mower_id)
            )
            if cursor.rowcount == 0:
                raise ValueError("Service interval not found")
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def get_service_logs(cls, mower_id: int) -> List[ServiceLogRead]:
        """Service history of a mower, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM service_logs WHERE mower_id = ? ORDER BY date DESC, id DESC", (mower_id,)
            ).fetchall()
            return [ServiceLogRead(**{key: row[key] for key in row.keys()}) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def notify_service_needed(cls, mower_name: str, mower_id: int, interval: sqlite3.Row) -> None:
        """Tell every active administrator that a service interval is due."""
        from .notification_service import NotificationService
        from .user_service import UserService

        for admin in await UserService.get_admins():
            await NotificationService.add_notification(
                user_id=admin.id,
                title="Service nødvendig",
                message=f"{mower_name} trenger service: {interval['description']}",
                type="service_needed",
                data={"mowerId": mower_id, "serviceIntervalId": interval["id"]},
            )
