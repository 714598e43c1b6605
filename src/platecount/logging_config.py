"""Logging setup for the platecount CLI and HTTP application.

Modules log through ``logging.getLogger(__name__)`` with ``key=value``
context in the message; this module only decides where records go and
how they look.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Optional

_LOGGER_PREFIX = "platecount"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None


class JSONFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            payload["exc_type"] = type(record.exc_info[1]).__name__
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str | int = logging.WARNING, fmt: str = "text", stream: Any = None) -> None:
    """Send platecount log records to ``stream`` (stderr by default).

    Calling it again replaces the handler installed by the previous call,
    so repeated CLI invocations in one process do not stack handlers.
    """
    global _handler
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    if _handler is not None:
        root_logger.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    if fmt == "json":
        _handler.setFormatter(JSONFormatter())
    else:
        _handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(_handler)
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)


def reset_logging() -> None:
    """Remove the handler installed by configure_logging."""
    global _handler
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    if _handler is not None:
        root_logger.removeHandler(_handler)
        _handler = None
    root_logger.setLevel(logging.NOTSET)
