"""
Business logic for users.

Renters are plain CRUD records.  The only rule is that an email
address belongs to at most one user.  A user with reservations on
record cannot be deleted, so the ledger never loses its history.
"""

import logging
import sqlite3
from datetime import datetime
from typing import List

from library_rental_api.app.core.db import get_connection, transaction
from library_rental_api.app.core.exceptions import ConflictError, NotFoundError
from library_rental_api.app.schemas.user import UserCreate, UserRead, UserUpdate


logger = logging.getLogger(__name__)


class UserService:
    """Service for managing renters."""

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> UserRead:
        return UserRead(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            phone_number=row["phone_number"],
            created_at=row["created_at"],
        )

    @classmethod
    def require(cls, conn: sqlite3.Connection, user_id: int) -> UserRead:
        row = conn.execute(
            "SELECT id, name, email, phone_number, created_at FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
        if not row:
            raise NotFoundError(f"User {user_id} not found")
        return cls._row_to_user(row)

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Create a new user.

        Raises ``ConflictError`` if another user already has the email.
        """
        with transaction() as conn:
            taken = conn.execute(
                "SELECT 1 FROM users WHERE email = ?", (data.email,)
            ).fetchone()
            if taken:
                raise ConflictError(f"A user with email {data.email} already exists")
            cursor = conn.execute(
                "INSERT INTO users (name, email, phone_number, created_at) VALUES (?, ?, ?, ?)",
                (data.name, data.email, data.phone_number, datetime.now().isoformat()),
            )
            user = cls.require(conn, cursor.lastrowid)
        logger.info("Created user with id %s", user.id)
        return user

    @classmethod
    async def get_user(cls, user_id: int) -> UserRead:
        """Retrieve a user by ID or raise ``NotFoundError``."""
        conn = get_connection()
        try:
            return cls.require(conn, user_id)
        finally:
            conn.close()

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        """Return the list of all users."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT id, name, email, phone_number, created_at FROM users ORDER BY id"
            ).fetchall()
            return [cls._row_to_user(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def update_user(cls, user_id: int, data: UserUpdate) -> UserRead:
        """Replace a user's profile.

        Raises ``NotFoundError`` if the user does not exist and
        ``ConflictError`` if the new email belongs to a different user.
        """
        with transaction() as conn:
            current = cls.require(conn, user_id)
            if data.email != current.email:
                taken = conn.execute(
                    "SELECT 1 FROM users WHERE email = ? AND id != ?",
                    (data.email, user_id),
                ).fetchone()
                if taken:
                    raise ConflictError(f"A user with email {data.email} already exists")
            conn.execute(
                "UPDATE users SET name = ?, email = ?, phone_number = ? WHERE id = ?",
                (data.name, data.email, data.phone_number, user_id),
            )
            user = cls.require(conn, user_id)
        logger.info("Updated user with id %s", user_id)
        return user

    @classmethod
    async def delete_user(cls, user_id: int) -> None:
        """Delete a user.

        Raises ``NotFoundError`` if the user does not exist and
        ``ConflictError`` if reservations still reference the user.
        """
        with transaction() as conn:
            cls.require(conn, user_id)
            row = conn.execute(
                "SELECT COUNT(*) AS count FROM reservations WHERE user_id = ?",
                (user_id,),
            ).fetchone()
            if row["count"]:
                raise ConflictError(
                    f"User {user_id} has {row['count']} reservation(s) on record and cannot be deleted"
                )
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        logger.info("Deleted user with id %s", user_id)
