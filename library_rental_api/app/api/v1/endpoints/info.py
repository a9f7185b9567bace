"""
Health endpoint for API v1.

Returns the service name and version together with a short summary of
the ledger so that operators can check both liveness and database
access with a single request.
"""

from typing import Any, Dict

from fastapi import APIRouter

from library_rental_api.app.core.config import settings
from library_rental_api.app.services.book_service import BookService
from library_rental_api.app.services.reservation_service import ReservationService

router = APIRouter()


@router.get("/", response_model=Dict[str, Any])
async def get_health() -> Dict[str, Any]:
    books = await BookService.list_books()
    active = await ReservationService.list_active()
    overdue = await ReservationService.list_overdue()
    return {
        "status": "ok",
        "service": settings.project_name,
        "version": settings.api_version,
        "books": len(books),
        "active_reservations": len(active),
        "overdue_reservations": len(overdue),
    }
