"""
Book catalog endpoints for API v1.

Provide catalog synchronisation with the external source, listing,
lookup by external ID and stock updates.
"""

from typing import List

from fastapi import APIRouter, Path, Query

from library_rental_api.app.core.db import MAX_ROW_ID
from library_rental_api.app.core.exceptions import LibraryError
from library_rental_api.app.schemas.book import BookRead
from library_rental_api.app.services.book_service import BookService
from .errors import to_http_error


router = APIRouter()


@router.post("/sync", response_model=List[BookRead])
async def sync_books() -> List[BookRead]:
    """Synchronise the catalog from the external API.

    New books are created with the default stock; existing books get
    their metadata refreshed.  Returns the synchronised books.  A
    failure to reach the external API yields HTTP 502.
    """
    try:
        return await BookService.sync_from_external()
    except LibraryError as e:
        raise to_http_error(e)


@router.get("/", response_model=List[BookRead])
async def list_books() -> List[BookRead]:
    """Return every book in the catalog."""
    return await BookService.list_books()


@router.get("/{external_id}", response_model=BookRead)
async def get_book(
    external_id: int = Path(..., le=MAX_ROW_ID, description="External ID of the book"),
) -> BookRead:
    try:
        return await BookService.get_book(external_id)
    except LibraryError as e:
        raise to_http_error(e)


@router.put("/{external_id}/stock", response_model=BookRead)
async def update_stock(
    external_id: int = Path(..., le=MAX_ROW_ID, description="External ID of the book"),
    stock_quantity: int = Query(..., le=MAX_ROW_ID, description="New total number of copies"),
) -> BookRead:
    """Change the number of copies the library owns.

    Copies currently on loan stay on loan, so the stock cannot be
    reduced below their number (HTTP 409).
    """
    try:
        return await BookService.update_stock(external_id, stock_quantity)
    except LibraryError as e:
        raise to_http_error(e)
