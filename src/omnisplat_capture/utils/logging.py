"""Logging setup for capture and processing components."""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


ROOT_LOGGER = "omnisplat_capture"


class CloudLoggingFormatter(logging.Formatter):
    """Formatter that emits one JSON object per record."""

    def __init__(self, session_id: Optional[str] = None):
        super().__init__()
        self.session_id = session_id

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "logger": record.name,
        }

        if self.session_id:
            log_entry["session_id"] = self.session_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%H:%M:%S")
        short_name = record.name.rsplit(".", 1)[-1]

        if self.use_color:
            color = self.COLORS.get(record.levelname, "")
            msg = f"{color}[{timestamp}] {record.levelname:8s}{self.RESET} {short_name}: {record.getMessage()}"
        else:
            msg = f"[{timestamp}] {record.levelname:8s} {short_name}: {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


def setup_logging(
    level: int = logging.INFO,
    session_id: Optional[str] = None,
    cloud_logging: bool = False,
    stream=None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Logging level.
        session_id: Capture session ID attached to JSON records.
        cloud_logging: If True, emit JSON lines instead of console text.
        stream: Output stream (defaults to stderr).

    Returns:
        The configured ``omnisplat_capture`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    target = stream or sys.stderr
    handler = logging.StreamHandler(target)
    handler.setLevel(level)

    if cloud_logging:
        handler.setFormatter(CloudLoggingFormatter(session_id=session_id))
    else:
        handler.setFormatter(ConsoleFormatter(use_color=hasattr(target, "isatty") and target.isatty()))

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger under the package namespace.

    Args:
        name: Logger name (prefixed with 'omnisplat_capture.' when needed).
    """
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
