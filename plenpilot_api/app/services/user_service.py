"""
Business logic for users.

Users are administrators or employees.  The first account ever
created becomes an administrator so that a fresh installation can be
bootstrapped; every later account is created by an administrator.
"""

import logging
import sqlite3
from typing import Dict, Iterable, List, Optional

from ..core.db import fetch_in_chunks, get_connection, select_by_ids
from ..core.errors import ServiceError
from ..core.security import ROLE_ADMIN, ROLE_EMPLOYEE, hash_password, verify_password
from ..schemas.user import UserCreate, UserRead, UserUpdate

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, email, name, role, disabled"


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        role=row["role"],
        disabled=bool(row["disabled"]),
    )


class UserService:
    """Service for user accounts and lookups."""

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Create a new user account.

        The password is stored as a PBKDF2 hash.  If no users exist
        yet, the account is created as ``admin`` regardless of the
        requested role.  Raises ``ValueError`` if the email is taken.
        """
        logger.info("Creating user %s", data.email)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            count = cursor.execute("SELECT COUNT(*) AS count FROM users").fetchone()["count"]
            role = ROLE_ADMIN if count == 0 else data.role
            cursor.execute(
                "INSERT INTO users (email, name, password, role) VALUES (?, ?, ?, ?)",
                (data.email, data.name, hash_password(data.password), role),
            )
            user_id = cursor.lastrowid
            conn.commit()
            return UserRead(id=user_id, email=data.email, name=data.name, role=role)
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ValueError(f"User with email {data.email} already exists") from exc
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Error adding user: %s", exc)
            raise ServiceError("Kunne ikke opprette bruker. Prøv igjen senere.") from exc
        finally:
            conn.close()

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user if the credentials match and the account is active."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {USER_COLUMNS}, password FROM users WHERE email = ?",
                (email,),
            ).fetchone()
        finally:
            conn.close()
        if not row or row["disabled"]:
            return None
        if not verify_password(password, row["password"]):
            return None
        return _row_to_user(row)

    @classmethod
    async def get_user_by_id(cls, user_id: int) -> Optional[UserRead]:
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return _row_to_user(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Error getting user: %s", exc)
            raise ServiceError("Kunne ikke hente brukerdetaljer") from exc
        finally:
            conn.close()

    @classmethod
    async def _fetch_users_chunk(cls, ids: List[int]) -> List[UserRead]:
        return [_row_to_user(row) for row in select_by_ids("users", USER_COLUMNS, ids)]

    @classmethod
    async def get_users_by_ids(cls, user_ids: Iterable[int]) -> List[UserRead]:
        """Fetch several users at once; ids are looked up ten at a time."""
        try:
            return await fetch_in_chunks(user_ids, cls._fetch_users_chunk)
        except sqlite3.Error as exc:
            logger.error("Error getting users by ids: %s", exc)
            raise ServiceError("Kunne ikke hente brukerdetaljer") from exc

    @classmethod
    async def get_users_map(cls, user_ids: Iterable[int]) -> Dict[int, UserRead]:
        return {user.id: user for user in await cls.get_users_by_ids(user_ids)}

    @classmethod
    async def get_all_employees(cls) -> List[UserRead]:
        """Return all employees ordered by name."""
        return await cls._list_where("role = ?", (ROLE_EMPLOYEE,), "Kunne ikke hente ansatte")

    @classmethod
    async def get_admins(cls) -> List[UserRead]:
        return await cls._list_where(
            "role = ? AND disabled = 0", (ROLE_ADMIN,), "Kunne ikke hente administratorer"
        )

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        return await cls._list_where("1 = 1", (), "Kunne ikke hente brukere")

    @classmethod
    async def _list_where(cls, where: str, params: tuple, error_message: str) -> List[UserRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE {where} ORDER BY name",
                params,
            ).fetchall()
            return [_row_to_user(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("%s: %s", error_message, exc)
            raise ServiceError(error_message) from exc
        finally:
            conn.close()

    @classmethod
    async def update_user(cls, user_id: int, updates: UserUpdate) -> UserRead:
        """Update the provided fields of a user.

        Raises ``ValueError`` if the user does not exist or the new
        email is already in use.
        """
        values = updates.model_dump(exclude_unset=True, exclude_none=True)
        if "password" in values:
            values["password"] = hash_password(values["password"])
        if "disabled" in values:
            values["disabled"] = 1 if values["disabled"] else 0
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone():
                raise ValueError(f"User {user_id} not found")
            if values:
                assignments = ", ".join(f"{key} = ?" for key in values)
                cursor.execute(
                    f"UPDATE users SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*values.values(), user_id),
                )
                conn.commit()
            row = cursor.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return _row_to_user(row)
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ValueError("Email is already in use") from exc
        finally:
            conn.close()

    @classmethod
    async def set_fcm_token(cls, user_id: int, token: Optional[str]) -> None:
        """Store (or clear) the device token used for push delivery."""
        conn = get_connection()
        try:
            conn.execute(
                "UPDATE users SET fcm_token = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (token, user_id),
            )
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def delete_user(cls, user_id: int) -> None:
        """Delete a user together with their time entries and notifications."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone():
                raise ValueError(f"User {user_id} not found")
            cursor.execute("DELETE FROM users WHERE id = ?", (user_id,))
            conn.commit()
            logger.info("Deleted user %s", user_id)
        finally:
            conn.close()
