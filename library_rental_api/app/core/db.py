"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), running a unit of work (``transaction``) and
applying migrations on application start (``init_db``).  It uses
SQLite as a lightweight embedded database; to switch to another DBMS
you would replace connection logic and adapt SQL syntax accordingly.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import settings


logger = logging.getLogger(__name__)

# Largest value an SQLite INTEGER column can hold.
MAX_ROW_ID = 2**63 - 1


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # library_rental_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name.  Dates
    and money are stored as text and converted by the services, so no
    type detection is enabled.
    """
    conn = sqlite3.connect(get_database_path(), timeout=settings.database_timeout)
    conn.row_factory = sqlite3.Row
    # Foreign keys are off by default in SQLite and must be enabled per connection.
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


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    """Run the enclosed block as one atomic unit of work.

    ``BEGIN IMMEDIATE`` takes SQLite's write lock before anything is
    read, so a read-modify-write of a book's stock cannot interleave
    with another writer.  The transaction is committed when the block
    exits normally and rolled back on any exception, which is then
    re-raised.
    """
    conn = get_connection()
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")
    finally:
        conn.close()


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    the ``migrations`` list.  If you add a new migration, append it
    with an incremented version number.
    """
    migrations: list[tuple[int, str]] = [
        # Migration 1: Initial schema
        (
            1,
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                phone_number TEXT,
                created_at TIMESTAMP NOT NULL
            );

            -- Prices are stored as text so that Decimal values survive
            -- the round trip exactly.
            CREATE TABLE IF NOT EXISTS books (
                external_id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                authors TEXT,
                first_publish_year INTEGER,
                edition_count INTEGER,
                has_fulltext INTEGER,
                price TEXT NOT NULL,
                stock_quantity INTEGER NOT NULL DEFAULT 0,
                available_quantity INTEGER NOT NULL DEFAULT 0,
                CHECK (available_quantity >= 0),
                CHECK (available_quantity <= stock_quantity)
            );

            CREATE TABLE IF NOT EXISTS reservations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                book_external_id INTEGER NOT NULL,
                rental_days INTEGER NOT NULL CHECK (rental_days > 0),
                start_date DATE NOT NULL,
                expected_return_date DATE NOT NULL,
                actual_return_date DATE,
                daily_rate TEXT NOT NULL,
                base_fee TEXT NOT NULL,
                late_fee TEXT NOT NULL DEFAULT '0.00',
                total_fee TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'ACTIVE',
                created_at TIMESTAMP NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id),
                FOREIGN KEY(book_external_id) REFERENCES books(external_id)
            );
            """,
        ),
        # Migration 2: indices for the ledger queries
        (
            2,
            """
            CREATE INDEX IF NOT EXISTS idx_reservations_user_id ON reservations(user_id);
            CREATE INDEX IF NOT EXISTS idx_reservations_book ON reservations(book_external_id);
            CREATE INDEX IF NOT EXISTS idx_reservations_status ON reservations(status, expected_return_date);
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
                logger.info("Applying migration %s", version)
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
