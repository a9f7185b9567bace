"""
Reservation endpoints for API v1.

These routes expose the reservation ledger: creating a reservation,
returning a book and the ledger queries.  Fixed paths (``/active``,
``/overdue``, ``/user/...``) are declared before ``/{reservation_id}``
so they are not captured by it.
"""

from typing import List

from fastapi import APIRouter, Path, status

from library_rental_api.app.core.db import MAX_ROW_ID
from library_rental_api.app.core.exceptions import LibraryError
from library_rental_api.app.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReturnBookRequest,
)
from library_rental_api.app.services.reservation_service import ReservationService
from .errors import to_http_error


router = APIRouter()


@router.post("/", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(request: ReservationCreate) -> ReservationRead:
    """Reserve a book for a user.

    Returns HTTP 404 when the user or book is unknown, 409 when no
    copy is available and 400 when ``rental_days`` is not positive.
    """
    try:
        return await ReservationService.create_reservation(request)
    except LibraryError as e:
        raise to_http_error(e)


@router.get("/", response_model=List[ReservationRead])
async def list_reservations() -> List[ReservationRead]:
    return await ReservationService.list_reservations()


@router.get("/active", response_model=List[ReservationRead])
async def list_active_reservations() -> List[ReservationRead]:
    """Reservations whose book has not come back yet."""
    return await ReservationService.list_active()


@router.get("/overdue", response_model=List[ReservationRead])
async def list_overdue_reservations() -> List[ReservationRead]:
    """Active reservations whose expected return date is in the past.

    Their stored status is still ``ACTIVE``; ``OVERDUE`` is only
    assigned when a late book is actually returned.
    """
    return await ReservationService.list_overdue()


@router.get("/user/{user_id}", response_model=List[ReservationRead])
async def list_user_reservations(
    user_id: int = Path(..., le=MAX_ROW_ID, description="ID of the user"),
) -> List[ReservationRead]:
    return await ReservationService.list_by_user(user_id)


@router.get("/{reservation_id}", response_model=ReservationRead)
async def get_reservation(
    reservation_id: int = Path(..., le=MAX_ROW_ID, description="ID of the reservation"),
) -> ReservationRead:
    try:
        return await ReservationService.get_reservation(reservation_id)
    except LibraryError as e:
        raise to_http_error(e)


@router.post("/{reservation_id}/return", response_model=ReservationRead)
async def return_book(
    request: ReturnBookRequest,
    reservation_id: int = Path(..., le=MAX_ROW_ID, description="ID of the reservation"),
) -> ReservationRead:
    """Return the book of an active reservation.

    A late return is charged a late fee and stored as ``OVERDUE``.
    Returning a reservation twice yields HTTP 409.
    """
    try:
        return await ReservationService.return_book(reservation_id, request)
    except LibraryError as e:
        raise to_http_error(e)
