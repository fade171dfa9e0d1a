"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), applying migrations on application start
(``init_db``) and helpers for batched lookups.  "Id is one of N"
queries are always split into chunks of at most ``MAX_IN_QUERY_SIZE``
ids; the chunks are issued concurrently and merged before the caller
continues.  Bulk writes are committed in batches of at most
``MAX_BATCH_WRITES`` rows.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import asyncio
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Iterator, List, Sequence, TypeVar

from .config import settings

T = TypeVar("T")
R = TypeVar("R")

MAX_IN_QUERY_SIZE = 10
MAX_BATCH_WRITES = 500


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # plenpilot_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name and
    enforces foreign keys.  Timestamps are stored and returned as ISO
    strings.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def chunked(items: Sequence[T], size: int = MAX_IN_QUERY_SIZE) -> List[List[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements."""
    if size < 1:
        raise ValueError("Chunk size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def unique(items: Iterable[T]) -> List[T]:
    """Drop duplicates and falsy values, keeping first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


async def fetch_in_chunks(
    ids: Iterable[Any],
    fetch_chunk: Callable[[List[Any]], Awaitable[List[R]]],
    size: int = MAX_IN_QUERY_SIZE,
) -> List[R]:
    """Run ``fetch_chunk`` once per chunk of distinct ids and merge the results.

    All chunk lookups are started together and awaited as a group;
    the merged list keeps chunk order.  Twenty‑three distinct ids
    result in exactly three lookups (10 + 10 + 3).
    """
    batches = chunked(unique(ids), size)
    if not batches:
        return []
    results = await asyncio.gather(*(fetch_chunk(batch) for batch in batches))
    merged: List[R] = []
    for rows in results:
        merged.extend(rows)
    return merged


def select_by_ids(
    table: str,
    columns: str,
    ids: Sequence[Any],
    key: str = "id",
) -> List[sqlite3.Row]:
    """Fetch rows whose ``key`` column is one of ``ids`` (a single chunk)."""
    if len(ids) > MAX_IN_QUERY_SIZE:
        raise ValueError(f"At most {MAX_IN_QUERY_SIZE} ids per lookup, got {len(ids)}")
    if not ids:
        return []
    placeholders = ", ".join("?" for _ in ids)
    conn = get_connection()
    try:
        return conn.execute(
            f"SELECT {columns} FROM {table} WHERE {key} IN ({placeholders})",
            tuple(ids),
        ).fetchall()
    finally:
        conn.close()


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations.  If you
    add a new migration, append it with an incremented version number.
    """
    migrations: list[tuple[int, str]] = [
        # Migration 1: Initial schema
        (
            1,
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                password TEXT,
                role TEXT NOT NULL DEFAULT 'employee',
                fcm_token TEXT,
                disabled INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS locations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                address TEXT NOT NULL DEFAULT '',
                maintenance_frequency INTEGER NOT NULL DEFAULT 2,
                edge_cutting_frequency INTEGER NOT NULL DEFAULT 4,
                start_week INTEGER NOT NULL DEFAULT 18,
                notes TEXT NOT NULL DEFAULT '',
                last_maintenance_week INTEGER,
                last_edge_cutting_week INTEGER,
                is_archived INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS mowers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                model TEXT NOT NULL DEFAULT '',
                serial_number TEXT NOT NULL DEFAULT '',
                total_hours REAL NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS service_intervals (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                mower_id INTEGER NOT NULL,
                description TEXT NOT NULL,
                hour_interval REAL NOT NULL,
                last_reset_hours REAL NOT NULL DEFAULT 0,
                last_reset_date TIMESTAMP,
                last_reset_by TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY(mower_id) REFERENCES mowers(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS service_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                mower_id INTEGER NOT NULL,
                service_interval_id INTEGER,
                performed_by TEXT NOT NULL,
                hours_at_service REAL NOT NULL,
                date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                notes TEXT,
                FOREIGN KEY(mower_id) REFERENCES mowers(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS time_entries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                location_id INTEGER NOT NULL,
                employee_id INTEGER NOT NULL,
                date TIMESTAMP NOT NULL,
                hours REAL NOT NULL,
                edge_cutting_done INTEGER NOT NULL DEFAULT 0,
                mower_id INTEGER,
                notes TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY(location_id) REFERENCES locations(id) ON DELETE CASCADE,
                FOREIGN KEY(employee_id) REFERENCES users(id) ON DELETE CASCADE,
                FOREIGN KEY(mower_id) REFERENCES mowers(id) ON DELETE SET NULL
            );

            CREATE TABLE IF NOT EXISTS time_entry_tags (
                time_entry_id INTEGER NOT NULL,
                employee_id INTEGER NOT NULL,
                PRIMARY KEY (time_entry_id, employee_id),
                FOREIGN KEY(time_entry_id) REFERENCES time_entries(id) ON DELETE CASCADE,
                FOREIGN KEY(employee_id) REFERENCES users(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS notifications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                title TEXT NOT NULL,
                message TEXT NOT NULL,
                type TEXT NOT NULL DEFAULT 'general',
                data TEXT,
                read INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS season_settings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                year INTEGER NOT NULL,
                start_week INTEGER NOT NULL,
                end_week INTEGER NOT NULL,
                default_frequency INTEGER NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """,
        ),
        # Migration 2: push delivery tracking on notifications
        (
            2,
            """
            ALTER TABLE notifications ADD COLUMN push_sent INTEGER;
            ALTER TABLE notifications ADD COLUMN push_sent_at TIMESTAMP;
            ALTER TABLE notifications ADD COLUMN push_error TEXT;
            ALTER TABLE notifications ADD COLUMN push_error_at TIMESTAMP;
            ALTER TABLE notifications ADD COLUMN fcm_message_id TEXT;
            """,
        ),
        # Migration 3: indices for the weekly status and notification queries
        (
            3,
            """
            CREATE INDEX IF NOT EXISTS idx_time_entries_date ON time_entries(date);
            CREATE INDEX IF NOT EXISTS idx_time_entries_location_id ON time_entries(location_id);
            CREATE INDEX IF NOT EXISTS idx_time_entries_employee_id ON time_entries(employee_id);
            CREATE INDEX IF NOT EXISTS idx_time_entry_tags_employee_id ON time_entry_tags(employee_id);
            CREATE INDEX IF NOT EXISTS idx_service_intervals_mower_id ON service_intervals(mower_id);
            CREATE INDEX IF NOT EXISTS idx_notifications_user_id ON notifications(user_id);
            CREATE INDEX IF NOT EXISTS idx_notifications_created_at ON notifications(created_at);
            CREATE INDEX IF NOT EXISTS idx_season_settings_year ON season_settings(year);
            """,
        ),
    ]

    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in migrations:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
