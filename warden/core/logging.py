"""
Logging configuration module.

Records are written to stdout and, when enabled, to a rotating log file plus
a rotating error-only file. Two renderings are available:

- ``detailed``: human-readable lines for local development
- ``json``: one JSON object per record for log aggregation

Every record carries ``correlation_id``, the id of the request being served.
"""

import logging
import logging.config
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from warden.core.config import settings

# Set by RequestIDMiddleware for the duration of a request
request_id_var: ContextVar[str] = ContextVar("request_id", default="no-request-id")

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_TEXT_FORMAT = (
    "%(asctime)s %(levelname)-8s [%(correlation_id)s] %(name)s:%(lineno)d - %(message)s"
)
_JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(funcName)s %(lineno)d %(message)s"

# Third-party loggers that are too chatty at the application level
_QUIET_LOGGERS = {
    "uvicorn.access": "WARNING",  # RequestLoggingMiddleware logs every request
    "sqlalchemy.engine": "WARNING",  # INFO echoes every statement
    "aiosqlite": "WARNING",
}


class CorrelationIdFilter(logging.Filter):
    """
    Stamp each record with the current request id.

    Records emitted outside a request (startup, bootstrap ticks) carry
    'no-request-id'.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = request_id_var.get()
        return True


def _rotating_file(filename: str, level: str, formatter: str) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": filename,
        "maxBytes": settings.log_file_max_bytes,
        "backupCount": settings.log_file_backup_count,
        "encoding": "utf-8",
        "filters": ["correlation_id"],
    }


def get_logging_config() -> dict[str, Any]:
    """
    Build the ``dictConfig`` mapping for the current settings.

    Returns:
        Dictionary compatible with logging.config.dictConfig()
    """
    formatter = "json" if settings.log_format == "json" else "detailed"

    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "formatter": formatter,
            "stream": sys.stdout,
            "filters": ["correlation_id"],
        },
    }
    if settings.log_file_enabled:
        log_path = Path(settings.log_file_path)
        handlers["file"] = _rotating_file(str(log_path), settings.log_level, formatter)
        handlers["error_file"] = _rotating_file(
            str(log_path.with_name("error.log")), "ERROR", formatter
        )

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {"format": _TEXT_FORMAT, "datefmt": _DATE_FORMAT},
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": _JSON_FIELDS,
            },
        },
        "filters": {
            "correlation_id": {"()": CorrelationIdFilter},
        },
        "handlers": handlers,
        "root": {
            "level": settings.log_level,
            "handlers": list(handlers),
        },
        "loggers": {name: {"level": level} for name, level in _QUIET_LOGGERS.items()},
    }


def setup_logging() -> None:
    """
    Configure application logging from settings.

    Call once at application startup, before any logging occurs.
    """
    if settings.log_file_enabled:
        Path(settings.log_file_path).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(get_logging_config())

    logging.getLogger(__name__).info(
        f"Logging configured: level={settings.log_level}, "
        f"format={settings.log_format}, file_enabled={settings.log_file_enabled}"
    )
