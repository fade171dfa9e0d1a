"""
Business logic for time entries.

Employees submit a time entry after finishing a job at a location.
A submission is written in a single transaction: the entry itself,
its tagged co‑workers, the location's last maintenance/edge cutting
week and the mower's running hours.  Notifications for tagged
co‑workers and for mower service intervals that became due are sent
after the transaction commits.
"""

import logging
import sqlite3
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from ..core.config import settings
from ..core.db import fetch_in_chunks, get_connection, select_by_ids, unique
from ..core.errors import ServiceError
from ..core.security import ROLE_ADMIN
from ..core.weeks import (
    current_iso_week,
    iso_week_date_range,
    iso_week_number,
    iso_year,
    to_local_naive,
    to_storage,
)
from ..schemas.time_entry import (
    TimeEntryCreate,
    TimeEntryRead,
    TimeEntryWithDetails,
)

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = "id, location_id, employee_id, date, hours, edge_cutting_done, mower_id, notes, created_at"
JOINED_ENTRY_COLUMNS = ", ".join(f"te.{c} AS {c}" for c in ENTRY_COLUMNS.split(", "))

UNKNOWN_LOCATION_NAME = "Ukjent sted"
UNKNOWN_EMPLOYEE_NAME = "Ukjent ansatt"


def _interval_is_due(total_hours: float, interval: sqlite3.Row) -> bool:
    return total_hours - interval["last_reset_hours"] >= interval["hour_interval"]


async def _fetch_tags_chunk(entry_ids: List[int]) -> List[sqlite3.Row]:
    return select_by_ids("time_entry_tags", "time_entry_id, employee_id", entry_ids, key="time_entry_id")


async def _rows_to_entries(rows: List[sqlite3.Row]) -> List[TimeEntryRead]:
    """Convert entry rows and attach their tagged employee ids."""
    tag_rows = await fetch_in_chunks([row["id"] for row in rows], _fetch_tags_chunk)
    tags: Dict[int, List[int]] = defaultdict(list)
    for tag in tag_rows:
        tags[tag["time_entry_id"]].append(tag["employee_id"])
    return [
        TimeEntryRead(
            id=row["id"],
            location_id=row["location_id"],
            employee_id=row["employee_id"],
            date=row["date"],
            hours=row["hours"],
            edge_cutting_done=bool(row["edge_cutting_done"]),
            mower_id=row["mower_id"],
            notes=row["notes"] or "",
            tagged_employee_ids=sorted(tags.get(row["id"], [])),
            created_at=row["created_at"],
        )
        for row in rows
    ]


def _week_bounds(week_number: Optional[int], year: Optional[int]):
    current_year, current_week = current_iso_week()
    start, end = iso_week_date_range(week_number or current_week, year or current_year)
    return to_storage(start), to_storage(end)


class TimeEntryService:
    """Service for logging and querying worked hours."""

    @classmethod
    async def add_time_entry(cls, data: TimeEntryCreate, employee_id: int) -> TimeEntryRead:
        """Record a finished job.

        Raises ``ValueError`` for an unknown or archived location, an
        unknown mower or an unknown tagged employee.  The author is
        never tagged on their own entry.
        """
        from .equipment_service import EquipmentService

        entry_date = to_local_naive(data.date or datetime.now(ZoneInfo(settings.timezone)))
        week = iso_week_number(entry_date)
        tagged_ids = [uid for uid in unique(data.tagged_employee_ids) if uid != employee_id]
        newly_due = []

        conn = get_connection()
        try:
            cursor = conn.cursor()
            location = cursor.execute(
                "SELECT id, name, is_archived FROM locations WHERE id = ?", (data.location_id,)
            ).fetchone()
            if not location or location["is_archived"]:
                raise ValueError(f"Location {data.location_id} not found")

            mower = None
            if data.mower_id is not None:
                mower = cursor.execute(
                    "SELECT id, name, total_hours FROM mowers WHERE id = ?", (data.mower_id,)
                ).fetchone()
                if not mower:
                    raise ValueError(f"Mower {data.mower_id} not found")

            cursor.execute(
                """
                INSERT INTO time_entries (location_id, employee_id, date, hours, edge_cutting_done, mower_id, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.location_id,
                    employee_id,
                    to_storage(entry_date),
                    data.hours,
                    int(data.edge_cutting_done),
                    data.mower_id,
                    data.notes,
                ),
            )
            entry_id = cursor.lastrowid
            cursor.executemany(
                "INSERT INTO time_entry_tags (time_entry_id, employee_id) VALUES (?, ?)",
                [(entry_id, uid) for uid in tagged_ids],
            )

            if data.edge_cutting_done:
                cursor.execute(
                    "UPDATE locations SET last_maintenance_week = MAX(COALESCE(last_maintenance_week, 0), ?), "
                    "last_edge_cutting_week = MAX(COALESCE(last_edge_cutting_week, 0), ?), "
                    "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (week, week, data.location_id),
                )
            else:
                cursor.execute(
                    "UPDATE locations SET last_maintenance_week = MAX(COALESCE(last_maintenance_week, 0), ?), "
                    "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (week, data.location_id),
                )

            if mower is not None:
                before = mower["total_hours"]
                after = before + data.hours
                cursor.execute(
                    "UPDATE mowers SET total_hours = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (after, mower["id"]),
                )
                intervals = cursor.execute(
                    "SELECT * FROM service_intervals WHERE mower_id = ?", (mower["id"],)
                ).fetchall()
                newly_due = [
                    interval for interval in intervals
                    if not _interval_is_due(before, interval) and _interval_is_due(after, interval)
                ]
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ValueError("Tagged employee not found") from exc
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error adding time entry: %s", exc)
            raise ServiceError("Kunne ikke lagre timeregistrering. Prøv igjen senere.") from exc
        finally:
            conn.close()

        logger.info(
            "Employee %s logged %s hours at location %s (entry %s)",
            employee_id, data.hours, data.location_id, entry_id,
        )
        for uid in tagged_ids:
            await cls._notify_tagged(uid, entry_id, location["id"], location["name"])
        for interval in newly_due:
            await EquipmentService.notify_service_needed(mower["name"], mower["id"], interval)
        return TimeEntryRead(
            id=entry_id,
            location_id=data.location_id,
            employee_id=employee_id,
            date=entry_date,
            hours=data.hours,
            edge_cutting_done=data.edge_cutting_done,
            mower_id=data.mower_id,
            notes=data.notes,
            tagged_employee_ids=sorted(tagged_ids),
        )

    @staticmethod
    async def _notify_tagged(user_id: int, entry_id: int, location_id: int, location_name: str) -> None:
        from .notification_service import NotificationService

        await NotificationService.add_notification(
            user_id=user_id,
            title="Du har blitt tagget i en jobb",
            message=f"Du har blitt tagget i en jobb på {location_name}",
            type="job_tagged",
            data={
                "locationId": location_id,
                "locationName": location_name,
                "timeEntryId": entry_id,
            },
        )

    @classmethod
    async def _query(cls, where: str, params: tuple, limit: Optional[int] = None) -> List[TimeEntryRead]:
        query = f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE {where} ORDER BY date DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params = (*params, limit)
        conn = get_connection()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        return await _rows_to_entries(rows)

    @classmethod
    async def get_time_entries_for_location(
        cls,
        location_id: int,
        week_number: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[TimeEntryRead]:
        """Entries for a location, newest first; one ISO week when ``week_number`` is given."""
        try:
            if week_number is None:
                return await cls._query("location_id = ?", (location_id,))
            start, end = _week_bounds(week_number, year)
            return await cls._query(
                "location_id = ? AND date >= ? AND date <= ?", (location_id, start, end)
            )
        except sqlite3.Error as exc:
            logger.error("Error getting time entries for location: %s", exc)
            raise ServiceError("Kunne ikke hente timeregistreringer") from exc

    @classmethod
    async def get_time_entries_for_employee(
        cls,
        employee_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TimeEntryRead]:
        where = ["employee_id = ?"]
        params: list = [employee_id]
        if start is not None:
            where.append("date >= ?")
            params.append(to_storage(start))
        if end is not None:
            where.append("date <= ?")
            params.append(to_storage(end))
        try:
            return await cls._query(" AND ".join(where), tuple(params))
        except sqlite3.Error as exc:
            logger.error("Error getting time entries for employee: %s", exc)
            raise ServiceError("Kunne ikke hente timeregistreringer") from exc

    @classmethod
    async def get_time_entries_in_range(cls, start: datetime, end: datetime) -> List[TimeEntryRead]:
        """All entries dated within ``[start, end]`` across every location."""
        return await cls._query("date >= ? AND date <= ?", (to_storage(start), to_storage(end)))

    @classmethod
    async def get_recent_time_entries(cls, count: int = 5) -> List[TimeEntryWithDetails]:
        """The most recent entries with location and employee names resolved.

        Names are fetched with one chunked lookup per kind; missing
        records fall back to placeholder names.
        """
        from .location_service import LocationService
        from .user_service import UserService

        try:
            entries = await cls._query("1 = 1", (), limit=count)
            locations = await LocationService.get_locations_by_ids(e.location_id for e in entries)
            users = await UserService.get_users_map(e.employee_id for e in entries)
        except sqlite3.Error as exc:
            logger.error("Error getting recent time entries: %s", exc)
            raise ServiceError("Kunne ikke hente siste aktivitet") from exc
        location_names = {location.id: location.name for location in locations}
        return [
            TimeEntryWithDetails(
                **entry.model_dump(),
                location_name=location_names.get(entry.location_id, UNKNOWN_LOCATION_NAME),
                employee_name=users[entry.employee_id].name if entry.employee_id in users else UNKNOWN_EMPLOYEE_NAME,
            )
            for entry in entries
        ]

    @classmethod
    async def get_weekly_aggregated_hours_by_employee(
        cls,
        week_number: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Dict[int, float]:
        """Total hours per employee for an ISO week (current week by default)."""
        start, end = _week_bounds(week_number, year)
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT employee_id, SUM(hours) AS hours FROM time_entries "
                "WHERE date >= ? AND date <= ? GROUP BY employee_id",
                (start, end),
            ).fetchall()
            return {row["employee_id"]: row["hours"] for row in rows}
        except sqlite3.Error as exc:
            logger.error("Error getting weekly hours: %s", exc)
            raise ServiceError("Kunne ikke hente ukentlige timer") from exc
        finally:
            conn.close()

    @classmethod
    async def tag_employee_for_time_entry(
        cls,
        time_entry_id: int,
        employee_id: int,
        current_user: Optional[dict] = None,
    ) -> None:
        """Tag an additional co‑worker on an existing entry and notify them.

        Tagging the author or an already tagged employee is a no‑op.
        When ``current_user`` is given it must be the entry's author or
        an administrator, otherwise ``PermissionError`` is raised.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                """
                SELECT te.id AS id, te.employee_id AS employee_id, l.id AS location_id, l.name AS location_name
                FROM time_entries te JOIN locations l ON l.id = te.location_id
                WHERE te.id = ?
                """,
                (time_entry_id,),
            ).fetchone()
            if not row:
                raise ValueError(f"Time entry {time_entry_id} not found")
            if (
                current_user is not None
                and current_user.get("role") != ROLE_ADMIN
                and current_user.get("user_id") != row["employee_id"]
            ):
                raise PermissionError("Only the author or an admin can tag employees on this entry")
            if row["employee_id"] == employee_id:
                return
            cursor.execute(
                "INSERT OR IGNORE INTO time_entry_tags (time_entry_id, employee_id) VALUES (?, ?)",
                (time_entry_id, employee_id),
            )
            added = cursor.rowcount > 0
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ValueError(f"Employee {employee_id} not found") from exc
        finally:
            conn.close()
        if added:
            await cls._notify_tagged(employee_id, time_entry_id, row["location_id"], row["location_name"])

    @classmethod
    async def get_pending_time_entries_for_employee(cls, employee_id: int) -> List[TimeEntryRead]:
        """Entries the employee is tagged on but has not logged their own hours for.

        An entry stays pending until the employee logs an entry of
        their own at the same location in the same ISO week.
        """
        conn = get_connection()
        try:
            rows = conn.execute(
                f"""
                SELECT {JOINED_ENTRY_COLUMNS}
                FROM time_entries te JOIN time_entry_tags t ON t.time_entry_id = te.id
                WHERE t.employee_id = ? AND te.employee_id != ?
                ORDER BY te.date DESC, te.id DESC
                """,
                (employee_id, employee_id),
            ).fetchall()
            own = conn.execute(
                "SELECT location_id, date FROM time_entries WHERE employee_id = ?", (employee_id,)
            ).fetchall()
        except sqlite3.Error as exc:
            logger.error("Error getting pending time entries: %s", exc)
            raise ServiceError("Kunne ikke hente ufullførte registreringer") from exc
        finally:
            conn.close()
        logged = {_week_key(row["location_id"], row["date"]) for row in own}
        entries = await _rows_to_entries(rows)
        return [
            entry for entry in entries
            if _week_key(entry.location_id, entry.date) not in logged
        ]


def _week_key(location_id: int, value) -> tuple:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return location_id, iso_year(value), iso_week_number(value)

