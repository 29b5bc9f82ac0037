"""
Logging configuration module.

Records are written to stdout and, when enabled, to rotating files
(``app.log`` plus an ERROR-only ``error.log`` beside it). Every record
carries the id of the request it was emitted in, so one request can be
followed through the auth, notification and audit layers.

LOG_FORMAT=json switches all handlers to python-json-logger output.
"""

import logging
import logging.config
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from src.core.config import settings

# Set by RequestIDMiddleware for the duration of each request
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Third-party loggers kept at a fixed level regardless of LOG_LEVEL
LIBRARY_LOG_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "sqlalchemy": "WARNING",  # INFO shows every SQL statement
    "sqlalchemy.engine": "WARNING",
    "slowapi": "WARNING",
}


class RequestIdFilter(logging.Filter):
    """Attach ``request_id`` to every record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_ctx.get() or "-"
        return True


def _formatters() -> dict[str, dict[str, Any]]:
    return {
        "plain": {
            "format": (
                "%(asctime)s %(levelname)-8s %(name)s [%(request_id)s] "
                "%(filename)s:%(lineno)d %(message)s"
            ),
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "format": (
                "%(asctime)s %(levelname)s %(name)s %(request_id)s "
                "%(filename)s %(lineno)d %(funcName)s %(message)s"
            ),
            "rename_fields": {"levelname": "level", "asctime": "timestamp"},
        },
    }


def _rotating_file_handler(path: Path, level: str, formatter: str) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": str(path),
        "maxBytes": settings.log_file_max_bytes,
        "backupCount": settings.log_file_backup_count,
        "encoding": "utf-8",
        "filters": ["request_id"],
    }


def get_logging_config() -> dict[str, Any]:
    """
    Build the dictConfig for the current settings.

    Returns:
        Dictionary compatible with logging.config.dictConfig()
    """
    formatter = "json" if settings.log_format == "json" else "plain"

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "formatter": formatter,
            "stream": sys.stdout,
            "filters": ["request_id"],
        },
    }

    if settings.log_file_enabled:
        log_file = Path(settings.log_file_path)
        handlers["file"] = _rotating_file_handler(log_file, settings.log_level, formatter)
        handlers["error_file"] = _rotating_file_handler(
            log_file.parent / "error.log", "ERROR", formatter
        )

    handler_names = list(handlers)

    loggers: dict[str, dict[str, Any]] = {
        name: {"level": level, "handlers": ["console"], "propagate": False}
        for name, level in LIBRARY_LOG_LEVELS.items()
    }
    loggers["src"] = {
        "level": settings.log_level,
        "handlers": handler_names,
        "propagate": False,
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": _formatters(),
        "filters": {"request_id": {"()": RequestIdFilter}},
        "handlers": handlers,
        "root": {"level": settings.log_level, "handlers": handler_names},
        "loggers": loggers,
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
        f"format={settings.log_format}, "
        f"file_enabled={settings.log_file_enabled}"
    )
