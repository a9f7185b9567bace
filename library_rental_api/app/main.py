"""
ASGI application for the Library Rental API.

``create_app`` wires logging, the ``/api/v1`` routes and the schema
migrations; ``app`` is the instance served by ``run.py`` or directly::

    uvicorn library_rental_api.app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.v1.endpoints.errors import to_http_error
from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import get_database_path, init_db
from .core.exceptions import LibraryError
from .core.logging_config import setup_logging


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the FastAPI application.

    Besides the per-route error handling, a ``LibraryError`` that
    escapes a route is still reported with its mapped status code
    instead of a 500.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.include_router(v1_router, prefix="/api/v1")

    @app.exception_handler(LibraryError)
    async def library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
        http_error = to_http_error(exc)
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=http_error.status_code, content={"detail": http_error.detail})

    @app.on_event("startup")
    async def startup_event() -> None:
        init_db()
        logger.info("%s %s using database %s", settings.project_name, settings.api_version, get_database_path())

    return app


app = create_app()
