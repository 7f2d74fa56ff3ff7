"""Configuration module for gistdex."""

from .settings import AppConfig, load_config
from .constants import (
    DEFAULT_KEYWORD_WEIGHT,
    DEFAULT_MAX_STAGES,
    DEFAULT_MIN_SCORE,
    DEFAULT_RERANK_BOOST,
    DEFAULT_STAGE_TIMEOUT_MS,
    DEFAULT_TOP_K,
)

__all__ = [
    # Settings
    "AppConfig",
    "load_config",
    # Constants
    "DEFAULT_KEYWORD_WEIGHT",
    "DEFAULT_MAX_STAGES",
    "DEFAULT_MIN_SCORE",
    "DEFAULT_RERANK_BOOST",
    "DEFAULT_STAGE_TIMEOUT_MS",
    "DEFAULT_TOP_K",
]
