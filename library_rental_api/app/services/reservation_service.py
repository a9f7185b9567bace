"""
Business logic for the reservation ledger.

The ``ReservationService`` creates rental reservations against
available stock, processes returns with late-fee calculation and
answers the ledger queries.  Creating and returning each run as one
unit of work (``core.db.transaction``): the book's stock and the
reservation row change together or not at all.

Fees:

* base fee = book price x rental days, rounded half-up to cents,
  fixed at creation;
* late fee = book price x ``settings.late_fee_rate`` x days late,
  rounded half-up to cents, computed at return;
* total fee = base fee + late fee.

A reservation is "overdue" in two unrelated senses.  The stored
``OVERDUE`` status means the book came back late.  ``list_overdue``
instead returns reservations still ``ACTIVE`` whose expected return
date has already passed.  Nothing promotes one into the other.
"""

import logging
import sqlite3
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from library_rental_api.app.core.config import settings
from library_rental_api.app.core.db import get_connection, transaction
from library_rental_api.app.core.exceptions import (
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from library_rental_api.app.core.money import round_money
from library_rental_api.app.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationStatus,
    ReturnBookRequest,
)
from library_rental_api.app.services.book_service import BookService
from library_rental_api.app.services.user_service import UserService


logger = logging.getLogger(__name__)

# Projection query: reservations joined explicitly with their user and book.
_SELECT_RESERVATION = """
    SELECT r.id, r.user_id, u.name AS user_name, r.book_external_id,
           b.title AS book_title, r.rental_days, r.start_date,
           r.expected_return_date, r.actual_return_date, r.daily_rate,
           r.base_fee, r.late_fee, r.total_fee, r.status, r.created_at
    FROM reservations r
    JOIN users u ON u.id = r.user_id
    JOIN books b ON b.external_id = r.book_external_id
"""


def calculate_base_fee(price: Decimal, rental_days: int) -> Decimal:
    """Price of renting a book for ``rental_days`` days.

    >>> calculate_base_fee(Decimal("15.99"), 7)
    Decimal('111.93')
    """
    return round_money(price * rental_days)


def calculate_late_fee(price: Decimal, days_late: int, rate: Optional[Decimal] = None) -> Decimal:
    """Penalty for returning a book ``days_late`` days after it was due.

    >>> calculate_late_fee(Decimal("15.99"), 3)
    Decimal('7.20')
    """
    if days_late <= 0:
        return round_money(0)
    rate = settings.late_fee_rate if rate is None else rate
    return round_money(price * rate * days_late)


class ReservationService:
    """Service for creating, returning and querying reservations."""

    @staticmethod
    def _row_to_reservation(row: sqlite3.Row) -> ReservationRead:
        return ReservationRead(
            id=row["id"],
            user_id=row["user_id"],
            user_name=row["user_name"],
            book_external_id=row["book_external_id"],
            book_title=row["book_title"],
            rental_days=row["rental_days"],
            start_date=row["start_date"],
            expected_return_date=row["expected_return_date"],
            actual_return_date=row["actual_return_date"],
            daily_rate=row["daily_rate"],
            base_fee=row["base_fee"],
            late_fee=row["late_fee"],
            total_fee=row["total_fee"],
            status=ReservationStatus(row["status"]),
            created_at=row["created_at"],
        )

    @classmethod
    def require(cls, conn: sqlite3.Connection, reservation_id: int) -> ReservationRead:
        row = conn.execute(
            _SELECT_RESERVATION + " WHERE r.id = ?", (reservation_id,)
        ).fetchone()
        if not row:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return cls._row_to_reservation(row)

    @classmethod
    def _query(cls, where: str = "", params: tuple = ()) -> List[ReservationRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                f"{_SELECT_RESERVATION} {where} ORDER BY r.id", params
            ).fetchall()
            return [cls._row_to_reservation(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def create_reservation(cls, request: ReservationCreate) -> ReservationRead:
        """Reserve one copy of a book for a user.

        Validates that the user and the book exist and that at least
        one copy is available, then stores an ``ACTIVE`` reservation
        with its base fee and takes one copy off the shelf.

        Raises
        ------
        ValidationError
            If ``rental_days`` is not positive or the return date would
            fall outside the supported calendar.
        NotFoundError
            If the user or the book does not exist.
        InsufficientStockError
            If no copy of the book is available.
        """
        logger.info(
            "Creating reservation for user %s and book %s",
            request.user_id,
            request.book_external_id,
        )
        if request.rental_days <= 0:
            raise ValidationError("Rental days must be a positive number")
        try:
            expected_return_date = request.start_date + timedelta(days=request.rental_days)
        except OverflowError:
            raise ValidationError(f"Rental period of {request.rental_days} days is out of range")

        with transaction() as conn:
            UserService.require(conn, request.user_id)
            book = BookService.require(conn, request.book_external_id)
            if book.available_quantity <= 0:
                raise InsufficientStockError(f"No copies of '{book.title}' are available")

            base_fee = calculate_base_fee(book.price, request.rental_days)

            BookService.decrement_available(conn, book.external_id)
            cursor = conn.execute(
                """
                INSERT INTO reservations (
                    user_id, book_external_id, rental_days, start_date,
                    expected_return_date, daily_rate, base_fee, late_fee,
                    total_fee, status, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    request.user_id,
                    book.external_id,
                    request.rental_days,
                    request.start_date.isoformat(),
                    expected_return_date.isoformat(),
                    str(round_money(book.price)),
                    str(base_fee),
                    str(round_money(0)),
                    str(base_fee),
                    ReservationStatus.ACTIVE.value,
                    datetime.now().isoformat(),
                ),
            )
            reservation = cls.require(conn, cursor.lastrowid)

        logger.info(
            "Reservation %s created; '%s' has %s copies available",
            reservation.id,
            book.title,
            book.available_quantity - 1,
        )
        return reservation

    @classmethod
    async def return_book(cls, reservation_id: int, request: ReturnBookRequest) -> ReservationRead:
        """Close a reservation when its book comes back.

        A return later than the expected date charges a late fee and
        marks the reservation ``OVERDUE``; otherwise it is marked
        ``RETURNED`` with no late fee.  Either way one copy goes back on
        the shelf.  Returning is a one-time transition.

        Raises
        ------
        NotFoundError
            If the reservation does not exist.
        InvalidStateError
            If the reservation is not ``ACTIVE``.
        ValidationError
            If the return date is earlier than the start date.
        """
        logger.info("Processing return for reservation %s", reservation_id)
        return_date = request.return_date

        with transaction() as conn:
            reservation = cls.require(conn, reservation_id)
            if reservation.status.is_closed:
                raise InvalidStateError(
                    f"Reservation {reservation_id} was already returned ({reservation.status.value})"
                )
            if return_date < reservation.start_date:
                raise ValidationError("Return date cannot be before the start date")

            book = BookService.require(conn, reservation.book_external_id)
            days_late = (return_date - reservation.expected_return_date).days
            if days_late > 0:
                late_fee = calculate_late_fee(book.price, days_late)
                status = ReservationStatus.OVERDUE
            else:
                late_fee = round_money(0)
                status = ReservationStatus.RETURNED
            total_fee = reservation.base_fee + late_fee

            conn.execute(
                """
                UPDATE reservations
                SET actual_return_date = ?, late_fee = ?, total_fee = ?, status = ?
                WHERE id = ? AND status = ?
                """,
                (
                    return_date.isoformat(),
                    str(late_fee),
                    str(total_fee),
                    status.value,
                    reservation_id,
                    ReservationStatus.ACTIVE.value,
                ),
            )
            BookService.increment_available(conn, book.external_id)
            updated = cls.require(conn, reservation_id)

        if status is ReservationStatus.OVERDUE:
            logger.warning(
                "Reservation %s returned %s day(s) late; late fee %s applied",
                reservation_id,
                days_late,
                late_fee,
            )
        else:
            logger.info("Reservation %s returned on time", reservation_id)
        logger.info("Return processed; total due %s", updated.total_fee)
        return updated

    @classmethod
    async def get_reservation(cls, reservation_id: int) -> ReservationRead:
        """Retrieve a reservation by ID or raise ``NotFoundError``."""
        conn = get_connection()
        try:
            return cls.require(conn, reservation_id)
        finally:
            conn.close()

    @classmethod
    async def list_reservations(cls) -> List[ReservationRead]:
        """Return all reservations."""
        return cls._query()

    @classmethod
    async def list_by_user(cls, user_id: int) -> List[ReservationRead]:
        """Return all reservations of one user."""
        return cls._query("WHERE r.user_id = ?", (user_id,))

    @classmethod
    async def list_by_status(cls, status: ReservationStatus) -> List[ReservationRead]:
        """Return reservations whose stored status equals ``status``."""
        return cls._query("WHERE r.status = ?", (ReservationStatus(status).value,))

    @classmethod
    async def list_active(cls) -> List[ReservationRead]:
        """Return reservations whose book is still out."""
        return await cls.list_by_status(ReservationStatus.ACTIVE)

    @classmethod
    async def list_overdue(cls, today: Optional[date] = None) -> List[ReservationRead]:
        """Return active reservations whose expected return date has passed.

        ``today`` defaults to the current date.  The stored status of
        the returned reservations is still ``ACTIVE``.
        """
        today = today or date.today()
        return cls._query(
            "WHERE r.status = ? AND r.expected_return_date < ?",
            (ReservationStatus.ACTIVE.value, today.isoformat()),
        )

    @classmethod
    async def list_active_by_book(cls, book_external_id: int) -> List[ReservationRead]:
        """Return the active reservations of one book."""
        return cls._query(
            "WHERE r.book_external_id = ? AND r.status = ?",
            (book_external_id, ReservationStatus.ACTIVE.value),
        )

    @classmethod
    async def count_active_by_book(cls, book_external_id: int) -> int:
        """Return how many copies of a book are currently out on loan."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS count FROM reservations WHERE book_external_id = ? AND status = ?",
                (book_external_id, ReservationStatus.ACTIVE.value),
            ).fetchone()
            return row["count"]
        finally:
            conn.close()
