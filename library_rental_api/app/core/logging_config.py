"""
Logging setup for the rental service.

Service modules log through ``logging.getLogger(__name__)``; this module
only wires the root logger once at application start.  Reservation and
return events are logged at ``INFO``, late returns at ``WARNING`` and
catalog synchronisation failures at ``ERROR``.
"""

import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO for a ledger log.
_QUIET_LOGGERS = ("urllib3", "uvicorn.access")

_HANDLER_NAME = "library_rental"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Attach console (and optionally file) handlers to the root logger.

    ``level`` is a level name such as ``"DEBUG"``; unknown names mean
    ``INFO``.  ``logfile`` is created together with its parent directory
    when given.  Calling this again is a no-op.
    """
    root = logging.getLogger()
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
