"""
Structured logging for the compositor.

Every module logger is a child of the "shortgen" package logger, which owns
the handlers: JSON lines on stderr (stdout is left to the caller) and an
optional rotating file. The current job_id is injected from a ContextVar.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import UUID

from shortgen.shared.config import settings

PACKAGE_LOGGER = "shortgen"
LOG_FILE_MAX_BYTES = 20 * 1024 * 1024
LOG_FILE_BACKUPS = 3

job_id_context: ContextVar[Optional[UUID]] = ContextVar("job_id", default=None)

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {"message", "asctime"}
_JSON_SCALARS = (str, int, float, bool, type(None))


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, job_id and extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }

        job_id = job_id_context.get()
        if job_id:
            entry["job_id"] = str(job_id)

        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            entry[key] = value if isinstance(value, _JSON_SCALARS) else str(value)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    (Re)build the package logger's handlers.

    Called lazily by get_logger with values from settings; call it directly
    to change level or log file at runtime.

    Args:
        level: Level name (defaults to settings.log_level)
        log_file: Rotating log file path (defaults to settings.log_file)

    Returns:
        The package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    level_name = (level or settings.log_level).upper()
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))

    formatter = JSONFormatter()
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)

    log_file = log_file if log_file is not None else settings.log_file
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, e.g. get_logger("composer.renderer") -> "shortgen.composer.renderer".
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        configure_logging()

    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def set_job_id(job_id: Optional[UUID]) -> None:
    """Attach job_id to every record logged from the current context."""
    job_id_context.set(job_id)


def get_job_id() -> Optional[UUID]:
    return job_id_context.get()
