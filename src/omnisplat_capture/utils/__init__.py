"""Utility modules for omnisplat_capture."""
from __future__ import annotations

from .logging import setup_logging, get_logger, CloudLoggingFormatter, ConsoleFormatter
from .io import save_json, load_json, save_yaml, load_yaml

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "CloudLoggingFormatter",
    "ConsoleFormatter",
    # I/O
    "save_json",
    "load_json",
    "save_yaml",
    "load_yaml",
]
