"""
Business logic for the book catalog.

The ``BookService`` stores catalog records in the ``books`` table and
guards the inventory invariant ``0 <= available_quantity <=
stock_quantity``.  Stock adjustments are single guarded ``UPDATE``
statements so they are safe to run inside the reservation ledger's
transaction as well as on their own.
"""

import json
import logging
import sqlite3
from typing import List, Optional

from library_rental_api.app.core.config import settings
from library_rental_api.app.core.db import get_connection, transaction
from library_rental_api.app.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from library_rental_api.app.core.money import round_money
from library_rental_api.app.schemas.book import BookRead, BookSave, ExternalBook
from library_rental_api.app.services.external_book_service import ExternalBookClient


logger = logging.getLogger(__name__)

_BOOK_COLUMNS = (
    "external_id, title, authors, first_publish_year, edition_count, "
    "has_fulltext, price, stock_quantity, available_quantity"
)


class BookService:
    """Service for the book catalog and its inventory counts."""

    @staticmethod
    def _row_to_book(row: sqlite3.Row) -> BookRead:
        authors = json.loads(row["authors"]) if row["authors"] else []
        has_fulltext = row["has_fulltext"]
        return BookRead(
            external_id=row["external_id"],
            title=row["title"],
            authors=authors,
            first_publish_year=row["first_publish_year"],
            edition_count=row["edition_count"],
            has_fulltext=None if has_fulltext is None else bool(has_fulltext),
            price=row["price"],
            stock_quantity=row["stock_quantity"],
            available_quantity=row["available_quantity"],
        )

    @classmethod
    def _fetch(cls, conn: sqlite3.Connection, external_id: int) -> Optional[BookRead]:
        row = conn.execute(
            f"SELECT {_BOOK_COLUMNS} FROM books WHERE external_id = ?",
            (external_id,),
        ).fetchone()
        return cls._row_to_book(row) if row else None

    @classmethod
    def require(cls, conn: sqlite3.Connection, external_id: int) -> BookRead:
        book = cls._fetch(conn, external_id)
        if book is None:
            raise NotFoundError(f"Book with external ID {external_id} not found")
        return book

    @classmethod
    def _upsert(cls, conn: sqlite3.Connection, book: BookSave) -> None:
        conn.execute(
            f"""
            INSERT INTO books ({_BOOK_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(external_id) DO UPDATE SET
                title = excluded.title,
                authors = excluded.authors,
                first_publish_year = excluded.first_publish_year,
                edition_count = excluded.edition_count,
                has_fulltext = excluded.has_fulltext,
                price = excluded.price,
                stock_quantity = excluded.stock_quantity,
                available_quantity = excluded.available_quantity
            """,
            (
                book.external_id,
                book.title,
                json.dumps(book.authors),
                book.first_publish_year,
                book.edition_count,
                None if book.has_fulltext is None else int(book.has_fulltext),
                str(round_money(book.price)),
                book.stock_quantity,
                book.available_quantity,
            ),
        )

    @classmethod
    def decrement_available(cls, conn: sqlite3.Connection, external_id: int) -> None:
        """Take one copy off the shelf within the caller's transaction.

        The ``available_quantity > 0`` guard is part of the ``UPDATE``
        itself, so the check and the decrement cannot be separated by a
        concurrent writer.
        """
        cursor = conn.execute(
            "UPDATE books SET available_quantity = available_quantity - 1 "
            "WHERE external_id = ? AND available_quantity > 0",
            (external_id,),
        )
        if cursor.rowcount == 0:
            book = cls.require(conn, external_id)
            raise InsufficientStockError(f"No copies of '{book.title}' are available")

    @classmethod
    def increment_available(cls, conn: sqlite3.Connection, external_id: int) -> None:
        """Put one copy back on the shelf within the caller's transaction."""
        cursor = conn.execute(
            "UPDATE books SET available_quantity = available_quantity + 1 "
            "WHERE external_id = ? AND available_quantity < stock_quantity",
            (external_id,),
        )
        if cursor.rowcount == 0:
            book = cls.require(conn, external_id)
            raise InvalidStateError(
                f"Available quantity of '{book.title}' cannot exceed its stock of {book.stock_quantity}"
            )

    @classmethod
    async def list_books(cls) -> List[BookRead]:
        """Return every book in the catalog ordered by external ID."""
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_BOOK_COLUMNS} FROM books ORDER BY external_id"
            ).fetchall()
            return [cls._row_to_book(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def find_by_external_id(cls, external_id: int) -> Optional[BookRead]:
        """Return the book with the given external ID, or ``None``."""
        conn = get_connection()
        try:
            return cls._fetch(conn, external_id)
        finally:
            conn.close()

    @classmethod
    async def get_book(cls, external_id: int) -> BookRead:
        """Return the book with the given external ID.

        Raises ``NotFoundError`` if it does not exist.
        """
        conn = get_connection()
        try:
            return cls.require(conn, external_id)
        finally:
            conn.close()

    @classmethod
    async def save_book(cls, book: BookSave) -> BookRead:
        """Insert or replace a complete book record."""
        if book.available_quantity > book.stock_quantity:
            raise ValidationError(
                f"Available quantity ({book.available_quantity}) cannot exceed stock ({book.stock_quantity})"
            )
        with transaction() as conn:
            cls._upsert(conn, book)
            saved = cls.require(conn, book.external_id)
        logger.info("Saved book %s ('%s')", saved.external_id, saved.title)
        return saved

    @classmethod
    async def update_stock(cls, external_id: int, stock_quantity: int) -> BookRead:
        """Change the total number of copies owned.

        Copies currently out on loan (``stock - available``) are kept
        out; the new available count is the new stock minus those.
        Reducing stock below the number of copies on loan is rejected.
        """
        if stock_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")
        with transaction() as conn:
            book = cls.require(conn, external_id)
            reserved = book.stock_quantity - book.available_quantity
            if stock_quantity < reserved:
                raise ConflictError(
                    f"Cannot reduce stock below the number of reserved copies: {reserved}"
                )
            conn.execute(
                "UPDATE books SET stock_quantity = ?, available_quantity = ? WHERE external_id = ?",
                (stock_quantity, stock_quantity - reserved, external_id),
            )
            updated = cls.require(conn, external_id)
        logger.info(
            "Stock updated for '%s': %s copies (%s available)",
            updated.title,
            updated.stock_quantity,
            updated.available_quantity,
        )
        return updated

    @classmethod
    async def decrease_available(cls, external_id: int) -> BookRead:
        """Decrease the available count by one, never below zero."""
        with transaction() as conn:
            cls.decrement_available(conn, external_id)
            return cls.require(conn, external_id)

    @classmethod
    async def increase_available(cls, external_id: int) -> BookRead:
        """Increase the available count by one, never above the stock."""
        with transaction() as conn:
            cls.increment_available(conn, external_id)
            return cls.require(conn, external_id)

    @classmethod
    async def sync_from_external(cls, client: Optional[ExternalBookClient] = None) -> List[BookRead]:
        """Upsert every book from the external catalog.

        New books start with ``settings.default_stock_quantity`` copies,
        all available.  Existing books get their metadata and price
        refreshed while their inventory counts are left untouched.  A
        missing or non-positive price falls back to
        ``settings.default_book_price``.  The whole batch is applied in
        one transaction.
        """
        client = client or ExternalBookClient()
        logger.info("Synchronizing books from external catalog %s", client.url)
        external_books = client.fetch_all_books()
        if not external_books:
            logger.warning("External catalog returned no books")
            return []

        synced: List[BookRead] = []
        with transaction() as conn:
            for external in external_books:
                existing = cls._fetch(conn, external.id)
                record = cls._from_external(external, existing)
                cls._upsert(conn, record)
                if existing is None:
                    logger.info("Created new book: '%s' (external ID %s)", record.title, record.external_id)
                else:
                    logger.info("Updated book: '%s' (external ID %s)", record.title, record.external_id)
                synced.append(cls.require(conn, external.id))
        logger.info("Synchronization completed: %s books processed", len(synced))
        return synced

    @staticmethod
    def _from_external(external: ExternalBook, existing: Optional[BookRead]) -> BookSave:
        price = external.price
        if price is None or price <= 0:
            price = settings.default_book_price
        if existing is None:
            stock = available = settings.default_stock_quantity
        else:
            stock, available = existing.stock_quantity, existing.available_quantity
        return BookSave(
            external_id=external.id,
            title=external.title,
            authors=external.author_name or [],
            first_publish_year=external.first_publish_year,
            edition_count=external.edition_count,
            has_fulltext=external.has_fulltext,
            price=round_money(price),
            stock_quantity=stock,
            available_quantity=available,
        )
