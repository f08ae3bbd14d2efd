"""Logging setup for the bridge.

Everything goes to a rotating JSON log (logs/spotify_osc.log) for later
inspection, and to the console in a short human-readable form. The sync loops
log structured events through ``log_with_context``; each carries an
``event_type`` field so the JSON log can be filtered per loop.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

LOG_FILE_NAME = "spotify_osc.log"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Context fields that must never reach a log file
_SECRET_FIELDS = frozenset({"access_token", "refresh_token", "client_secret", "code", "authorization"})

# Attributes LogRecord already defines; passing them as extra raises KeyError
_RESERVED_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

# Chatty libraries and the level they are capped at
_QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "pythonosc": logging.INFO,
}


def setup_logging(log_level: str = "INFO", log_dir: Path | None = None) -> logging.Logger:
    """Install the JSON file handler and the console handler on the root logger.

    Args:
        log_level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the JSON log file (defaults to <project>/logs)

    Returns:
        The root logger
    """
    level = logging.getLevelName(log_level.upper())
    if log_dir is None:
        log_dir = Path(__file__).parent.parent / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(min(level, logging.DEBUG))

    file_handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
            timestamp=True,
        )
    )
    file_handler.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", "%H:%M:%S"))
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: str, message: str, **context: Any) -> None:
    """Log a message with structured context fields.

    Secret-looking fields are masked, and field names that collide with
    ``LogRecord`` attributes are prefixed with ``ctx_``.

    Args:
        logger: Logger instance
        level: Log level name (debug, info, warning, error, critical)
        message: Log message
        **context: Extra JSON fields, e.g. event_type, device_id
    """
    extra = {}
    for key, value in context.items():
        if key in _SECRET_FIELDS and value:
            value = "***"
        extra[f"ctx_{key}" if key in _RESERVED_FIELDS else key] = value
    logger.log(logging.getLevelName(level.upper()), message, extra=extra)
