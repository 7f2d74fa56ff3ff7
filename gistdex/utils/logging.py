"""Logging utilities with trace ID support and colored output."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional


DEFAULT_LOG_LEVEL = logging.WARNING

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# All package loggers hang off this one so the CLI can tune them together
ROOT_LOGGER_NAME = "gistdex"


def set_logging_debug_mode(enabled: bool):
    """Switch the package loggers between DEBUG and the configured level."""
    _setup_logging()
    level = logging.DEBUG if enabled else _env_level()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def is_logging_debug_mode() -> bool:
    return logging.getLogger(ROOT_LOGGER_NAME).level <= logging.DEBUG


class TraceAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends trace ID to messages."""

    def __init__(self, logger: logging.Logger, trace_id: Optional[str]):
        super().__init__(logger, {"trace_id": trace_id})

    @property
    def trace_id(self) -> Optional[str]:
        return self.extra.get("trace_id")

    def process(self, msg, kwargs):
        trace = self.extra.get("trace_id")
        prefix = f"[trace={trace}] " if trace else ""
        return prefix + str(msg), kwargs


class ColorFormatter(logging.Formatter):
    """Formatter that adds ANSI colors to log messages."""

    COLORS = {
        logging.DEBUG: "\x1b[36m",    # Cyan
        logging.INFO: "\x1b[32m",     # Green
        logging.WARNING: "\x1b[33m",  # Yellow
        logging.ERROR: "\x1b[31m",    # Red
        logging.CRITICAL: "\x1b[41m", # Red background
    }

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        color = self.COLORS.get(record.levelno, "")
        reset = "\x1b[0m" if color else ""
        return f"{color}{base}{reset}"


def _env_level() -> int:
    name = os.getenv("GISTDEX_LOG_LEVEL", "WARNING").upper()
    return getattr(logging, name, DEFAULT_LOG_LEVEL)


def _setup_logging():
    """Attach a colored stderr handler to the package root logger once."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if logger.handlers:
        return

    handler = logging.StreamHandler(stream=sys.stderr)
    use_color = getattr(sys.stderr, "isatty", lambda: False)()
    handler.setFormatter(ColorFormatter(LOG_FORMAT) if use_color else logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(_env_level())
    # Keep our format; the host application's root logger stays untouched
    logger.propagate = False


def get_logger(name: str, trace_id: Optional[str] = None) -> TraceAdapter:
    """Get a package logger with optional trace ID support.

    Args:
        name: Logger name, nested under ``gistdex`` unless already prefixed
        trace_id: Optional trace ID for request tracking (e.g. a plan id)

    Returns:
        A LoggerAdapter with trace ID support
    """
    _setup_logging()

    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return TraceAdapter(logging.getLogger(name), trace_id)
