"""
Pydantic models for book data.

``BookSave`` carries a complete catalog record including inventory
counts; ``BookRead`` is what the API returns.  ``ExternalBook`` mirrors
the payload of the remote catalog, whose field names differ from ours
(``id`` and ``author_name``).
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class BookBase(BaseModel):
    title: str = Field(..., example="The Lord of the Rings")
    authors: List[str] = Field(default_factory=list, example=["J. R. R. Tolkien"])
    first_publish_year: Optional[int] = Field(None, example=1954)
    edition_count: Optional[int] = Field(None, example=120)
    has_fulltext: Optional[bool] = Field(None, example=True)
    price: Decimal = Field(..., ge=0, example="15.99")


class BookSave(BookBase):
    """Schema for storing a full book record, inventory included."""

    external_id: int = Field(..., example=27448)
    stock_quantity: int = Field(0, ge=0, example=10)
    available_quantity: int = Field(0, ge=0, example=10)


class BookRead(BookSave):
    """Schema for reading a book from the API."""

    model_config = {
        "from_attributes": True,
    }


class ExternalBook(BaseModel):
    """A book record as delivered by the external catalog."""

    id: int
    title: str
    author_name: Optional[List[str]] = None
    first_publish_year: Optional[int] = None
    edition_count: Optional[int] = None
    has_fulltext: Optional[bool] = None
    price: Optional[Decimal] = None
