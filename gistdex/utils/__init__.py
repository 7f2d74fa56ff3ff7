"""Utility helpers: logging and text processing."""

from .logging import get_logger, set_logging_debug_mode, is_logging_debug_mode
from .text import (
    ALL_STOP_WORDS,
    extract_keywords,
    normalize_whitespace,
    split_compound,
    tokenize_terms,
)

__all__ = [
    "get_logger",
    "set_logging_debug_mode",
    "is_logging_debug_mode",
    "ALL_STOP_WORDS",
    "extract_keywords",
    "normalize_whitespace",
    "split_compound",
    "tokenize_terms",
]
