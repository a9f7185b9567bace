"""
Domain errors raised by the service layer.

Every error derives from ``LibraryError`` which is itself a
``ValueError``, so callers that only care about "the request could not
be fulfilled" can catch a single type.  Endpoints translate each
subclass into its own HTTP status code.
"""


class LibraryError(ValueError):
    """Base class for all recoverable, user-visible failures."""


class NotFoundError(LibraryError):
    """A user, book or reservation does not exist."""


class InsufficientStockError(LibraryError):
    """No copies of the requested book are available."""


class InvalidStateError(LibraryError):
    """The operation is not allowed in the record's current state."""


class ConflictError(LibraryError):
    """The change collides with existing data (e.g. duplicate email)."""


class ValidationError(LibraryError):
    """Input is well-formed but violates a business rule."""


class CatalogSyncError(LibraryError):
    """The external catalog could not be fetched or parsed."""
