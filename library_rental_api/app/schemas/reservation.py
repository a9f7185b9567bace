"""
Pydantic models for rental reservations.

A reservation ties one user to one copy of a book for a number of
days.  ``ReservationRead`` is the full projection returned by every
ledger operation: it includes the user's name and the book's title
resolved through an explicit join, the computed dates and all fees.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from library_rental_api.app.core.db import MAX_ROW_ID


class ReservationStatus(str, Enum):
    """Stored lifecycle state of a reservation.

    ``ACTIVE`` is the only non-terminal state.  ``RETURNED`` and
    ``OVERDUE`` are set once, when the book comes back on time or late.
    """

    ACTIVE = "ACTIVE"
    RETURNED = "RETURNED"
    OVERDUE = "OVERDUE"

    @property
    def is_closed(self) -> bool:
        return self is not ReservationStatus.ACTIVE


class ReservationCreate(BaseModel):
    """Schema for creating a reservation."""

    user_id: int = Field(..., le=MAX_ROW_ID, example=1)
    book_external_id: int = Field(..., le=MAX_ROW_ID, example=27448)
    rental_days: int = Field(..., example=7, description="Number of days the book is rented for; must be positive")
    start_date: date = Field(..., example="2024-01-01")


class ReturnBookRequest(BaseModel):
    """Schema for returning a rented book."""

    return_date: date = Field(..., example="2024-01-09")


class ReservationRead(BaseModel):
    id: int
    user_id: int
    user_name: str
    book_external_id: int
    book_title: str
    rental_days: int
    start_date: date
    expected_return_date: date
    actual_return_date: Optional[date] = None
    daily_rate: Decimal
    base_fee: Decimal
    late_fee: Decimal
    total_fee: Decimal
    status: ReservationStatus
    created_at: datetime

    model_config = {
        "from_attributes": True,
    }
