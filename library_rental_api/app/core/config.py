"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts without any configuration; override them via
environment variables in a real deployment.
"""

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Library Rental API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional log file.  When empty only the console handler is used.
    log_file: str = os.getenv("LOG_FILE", "")

    # Path to the SQLite database.  A relative path is resolved relative
    # to the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "library_rental.db")
    # Seconds a connection waits for another writer to release the lock.
    database_timeout: float = float(os.getenv("DATABASE_TIMEOUT", "5.0"))

    # Remote catalog used by ``POST /books/sync``.
    external_books_url: str = os.getenv(
        "EXTERNAL_BOOKS_URL",
        "https://example.com/api/books",
    )
    external_api_timeout: int = int(os.getenv("EXTERNAL_API_TIMEOUT", "15"))

    # Inventory and pricing defaults applied when ingesting new books.
    default_stock_quantity: int = int(os.getenv("DEFAULT_STOCK_QUANTITY", "10"))
    default_book_price: Decimal = Decimal(os.getenv("DEFAULT_BOOK_PRICE", "10.00"))

    # Fraction of the book price charged per day of late return.
    late_fee_rate: Decimal = Decimal(os.getenv("LATE_FEE_RATE", "0.15"))

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before this module is imported.
settings = Settings()
