"""
Translation of service-layer errors into HTTP errors.

Endpoints catch ``LibraryError`` and re-raise the result of
``to_http_error`` so every route reports the same status code for the
same kind of failure.
"""

from fastapi import HTTPException, status

from library_rental_api.app.core.exceptions import (
    CatalogSyncError,
    ConflictError,
    InsufficientStockError,
    InvalidStateError,
    LibraryError,
    NotFoundError,
    ValidationError,
)


_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (CatalogSyncError, status.HTTP_502_BAD_GATEWAY),
)


def to_http_error(error: LibraryError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
