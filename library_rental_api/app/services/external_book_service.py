"""External catalog client.

The remote catalog exposes a single JSON endpoint returning a list of
book records.  ``ExternalBookClient`` wraps it with ``requests`` and
turns the payload into ``ExternalBook`` schemas.  Prices are parsed as
``Decimal`` straight from the JSON text so that no float rounding is
introduced before fees are computed.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import ValidationError as SchemaValidationError

from library_rental_api.app.core.config import settings
from library_rental_api.app.core.exceptions import CatalogSyncError
from library_rental_api.app.schemas.book import ExternalBook


logger = logging.getLogger(__name__)


class ExternalBookClient:
    """Client for the external book catalog."""

    def __init__(
        self,
        *,
        url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialise the client.

        Args:
            url: Catalog endpoint.  Defaults to ``settings.external_books_url``.
            timeout: Request timeout in seconds.  Defaults to
                ``settings.external_api_timeout``.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
        """
        self.url = url or settings.external_books_url
        self.timeout = timeout or settings.external_api_timeout
        self.session = session or requests.Session()

    def _request(self) -> Tuple[Optional[Any], Optional[Dict[str, Any]]]:
        """Fetch the raw catalog payload.

        Returns:
            A tuple ``(data, error)``.  ``data`` contains the parsed JSON
            response on success and ``error`` is ``None``.  On failure,
            ``data`` is ``None`` and ``error`` is a dictionary with keys
            ``status_code`` and ``message`` describing the issue.
        """
        try:
            logger.debug("Sending GET request to %s", self.url)
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            if response.content:
                return response.json(parse_float=Decimal), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = exc.response.text if exc.response is not None else ""
            if not message:
                message = str(exc)
            logger.error("Catalog request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("Catalog request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}
        except ValueError as exc:
            logger.error("Catalog returned invalid JSON: %s", exc)
            return None, {"status_code": None, "message": f"Invalid JSON: {exc}"}

    def fetch_all_books(self) -> List[ExternalBook]:
        """Return every book the catalog currently lists.

        Raises:
            CatalogSyncError: if the request fails or the payload is not
                a list of book records.
        """
        data, error = self._request()
        if error:
            raise CatalogSyncError(f"Error fetching external catalog: {error['message']}")
        if data is None:
            return []
        if not isinstance(data, list):
            raise CatalogSyncError("External catalog did not return a list of books")
        try:
            return [ExternalBook.model_validate(item) for item in data]
        except SchemaValidationError as exc:
            raise CatalogSyncError(f"Malformed book record in external catalog: {exc}") from exc
