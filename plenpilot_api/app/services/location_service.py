"""
Business logic for mowing locations.

Locations are listed as active or archived.  The weekly overview
(``get_locations_with_weekly_status``) combines the active locations
with the time entries of one ISO week and the users who logged them,
and hands the result to the status resolver.
"""

import logging
import sqlite3
from typing import Iterable, List, Optional

from ..core.db import fetch_in_chunks, get_connection, select_by_ids
from ..core.errors import ServiceError
from ..core.weeks import current_iso_week, iso_week_date_range
from ..schemas.location import LocationCreate, LocationRead, LocationUpdate, LocationWithStatus
from .status_resolver import resolve_weekly_status

logger = logging.getLogger(__name__)

LOCATION_COLUMNS = (
    "id, name, address, maintenance_frequency, edge_cutting_frequency, start_week, notes, "
    "last_maintenance_week, last_edge_cutting_week, is_archived, created_at, updated_at"
)
# The only columns an update may clear.
NULLABLE_COLUMNS = ("last_maintenance_week", "last_edge_cutting_week")


def _row_to_location(row: sqlite3.Row) -> LocationRead:
    return LocationRead(
        id=row["id"],
        name=row["name"],
        address=row["address"],
        maintenance_frequency=row["maintenance_frequency"],
        edge_cutting_frequency=row["edge_cutting_frequency"],
        start_week=row["start_week"],
        notes=row["notes"],
        last_maintenance_week=row["last_maintenance_week"],
        last_edge_cutting_week=row["last_edge_cutting_week"],
        is_archived=bool(row["is_archived"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class LocationService:
    """Service for managing mowing locations."""

    @classmethod
    async def add_location(cls, data: LocationCreate) -> LocationRead:
        """Create a new, active location with no maintenance history."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO locations (name, address, maintenance_frequency, edge_cutting_frequency, start_week, notes)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    data.name,
                    data.address,
                    data.maintenance_frequency,
                    data.edge_cutting_frequency,
                    data.start_week,
                    data.notes,
                ),
            )
            location_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute(
                f"SELECT {LOCATION_COLUMNS} FROM locations WHERE id = ?", (location_id,)
            ).fetchone()
            logger.info("Added location %s (%s)", location_id, data.name)
            return _row_to_location(row)
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error adding location: %s", exc)
            raise ServiceError("Kunne ikke legge til lokasjon") from exc
        finally:
            conn.close()

    @classmethod
    async def _list(cls, archived: bool) -> List[LocationRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT {LOCATION_COLUMNS} FROM locations WHERE is_archived = ? ORDER BY name",
                (1 if archived else 0,),
            ).fetchall()
            return [_row_to_location(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_active_locations(cls) -> List[LocationRead]:
        try:
            return await cls._list(archived=False)
        except sqlite3.Error as exc:
            logger.error("Error getting active locations: %s", exc)
            raise ServiceError("Kunne ikke hente aktive lokasjoner") from exc

    @classmethod
    async def get_archived_locations(cls) -> List[LocationRead]:
        try:
            return await cls._list(archived=True)
        except sqlite3.Error as exc:
            logger.error("Error getting archived locations: %s", exc)
            raise ServiceError("Kunne ikke hente arkiverte lokasjoner") from exc

    @classmethod
    async def get_location_by_id(cls, location_id: int) -> Optional[LocationRead]:
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {LOCATION_COLUMNS} FROM locations WHERE id = ?", (location_id,)
            ).fetchone()
            return _row_to_location(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Error getting location: %s", exc)
            raise ServiceError("Kunne ikke hente lokasjon") from exc
        finally:
            conn.close()

    @classmethod
    async def _fetch_locations_chunk(cls, ids: List[int]) -> List[LocationRead]:
        return [_row_to_location(row) for row in select_by_ids("locations", LOCATION_COLUMNS, ids)]

    @classmethod
    async def get_locations_by_ids(cls, location_ids: Iterable[int]) -> List[LocationRead]:
        """Fetch several locations; ids are looked up ten at a time."""
        try:
            return await fetch_in_chunks(location_ids, cls._fetch_locations_chunk)
        except sqlite3.Error as exc:
            logger.error("Error getting locations by ids: %s", exc)
            raise ServiceError("Kunne ikke hente lokasjoner") from exc

    @classmethod
    async def update_location(cls, location_id: int, updates: LocationUpdate) -> LocationRead:
        """Write the provided fields of a location.

        Raises ``ValueError`` if the location does not exist.
        """
        values = {
            key: value
            for key, value in updates.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_COLUMNS
        }
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM locations WHERE id = ?", (location_id,)).fetchone():
                raise ValueError(f"Location {location_id} not found")
            if values:
                assignments = ", ".join(f"{key} = ?" for key in values)
                cursor.execute(
                    f"UPDATE locations SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*values.values(), location_id),
                )
                conn.commit()
            row = cursor.execute(
                f"SELECT {LOCATION_COLUMNS} FROM locations WHERE id = ?", (location_id,)
            ).fetchone()
            return _row_to_location(row)
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error updating location: %s", exc)
            raise ServiceError("Kunne ikke oppdatere lokasjon") from exc
        finally:
            conn.close()

    @classmethod
    async def _set_archived(cls, location_id: int, archived: bool) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE locations SET is_archived = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (1 if archived else 0, location_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Location {location_id} not found")
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def archive_location(cls, location_id: int) -> None:
        await cls._set_archived(location_id, True)
        logger.info("Archived location %s", location_id)

    @classmethod
    async def restore_location(cls, location_id: int) -> None:
        await cls._set_archived(location_id, False)
        logger.info("Restored location %s", location_id)

    @classmethod
    async def delete_location(cls, location_id: int) -> None:
        """Delete a location; its time entries are removed with it."""
        conn = get_connection()
        try:
            cursor = conn.execute("DELETE FROM locations WHERE id = ?", (location_id,))
            if cursor.rowcount == 0:
                raise ValueError(f"Location {location_id} not found")
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def delete_all_locations(cls) -> int:
        conn = get_connection()
        try:
            cursor = conn.execute("DELETE FROM locations")
            conn.commit()
            logger.warning("Deleted all %s locations", cursor.rowcount)
            return cursor.rowcount
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error deleting all locations: %s", exc)
            raise ServiceError("Kunne ikke slette lokasjoner") from exc
        finally:
            conn.close()

    @classmethod
    async def get_locations_due_for_service(cls, current_week: Optional[int] = None) -> List[LocationRead]:
        """Active locations whose last mowing is at least one cadence ago."""
        if current_week is None:
            current_week = current_iso_week()[1]
        locations = await cls.get_active_locations()
        return [
            location for location in locations
            if current_week - (location.last_maintenance_week or 0) >= location.maintenance_frequency
        ]

    @classmethod
    async def get_locations_with_weekly_status(
        cls,
        week_number: int,
        year: Optional[int] = None,
    ) -> List[LocationWithStatus]:
        """Every active location with its status for an ISO week.

        ``year`` defaults to the current ISO year.  Raises
        ``ValueError`` for a week the year does not have and
        ``ServiceError`` when the store cannot be read.
        """
        from .time_entry_service import TimeEntryService
        from .user_service import UserService

        if year is None:
            year = current_iso_week()[0]
        start, end = iso_week_date_range(week_number, year)
        try:
            locations = await cls._list(archived=False)
            entries = await TimeEntryService.get_time_entries_in_range(start, end)
            user_ids = [entry.employee_id for entry in entries]
            for entry in entries:
                user_ids.extend(entry.tagged_employee_ids)
            users_by_id = await UserService.get_users_map(user_ids)
        except (sqlite3.Error, ServiceError) as exc:
            logger.error("Error getting locations with weekly status: %s", exc)
            raise ServiceError("Could not get locations with weekly status") from exc
        return resolve_weekly_status(week_number, locations, entries, users_by_id)
