"""
Pytest configuration and fixtures for the Library Rental API tests.

Every test gets its own SQLite file under ``tmp_path`` with all
migrations applied.
"""

from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio

from library_rental_api.app.core.config import settings
from library_rental_api.app.core.db import init_db
from library_rental_api.app.schemas.book import BookSave
from library_rental_api.app.schemas.user import UserCreate
from library_rental_api.app.services.book_service import BookService
from library_rental_api.app.services.user_service import UserService


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the application at a fresh database file."""
    db_file = tmp_path / "library_test.db"
    monkeypatch.setattr(settings, "database_url", str(db_file))
    init_db()
    yield db_file


# =============================================================================
# Sample Data Fixtures
# =============================================================================

def book_record(
    external_id: int = 1001,
    title: str = "The Hobbit",
    price: str = "15.99",
    stock: int = 10,
    available: Optional[int] = None,
) -> BookSave:
    return BookSave(
        external_id=external_id,
        title=title,
        authors=["J. R. R. Tolkien"],
        first_publish_year=1937,
        edition_count=50,
        has_fulltext=False,
        price=Decimal(price),
        stock_quantity=stock,
        available_quantity=stock if available is None else available,
    )


@pytest.fixture
def make_book():
    """Factory fixture storing a book and returning it."""

    async def _make(**kwargs):
        return await BookService.save_book(book_record(**kwargs))

    return _make


@pytest_asyncio.fixture
async def user():
    return await UserService.create_user(
        UserCreate(name="Ada Lovelace", email="ada@example.com", phone_number="555-0100")
    )


@pytest_asyncio.fixture
async def book(make_book):
    return await make_book()
