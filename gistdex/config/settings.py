"""Application settings loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from typing import Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_KEYWORD_WEIGHT,
    DEFAULT_MAX_STAGES,
    DEFAULT_MIN_SCORE,
    DEFAULT_RERANK_BOOST,
    DEFAULT_STAGE_TIMEOUT_MS,
    DEFAULT_TOP_K,
)
from ..core.exceptions import ConfigurationError


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class AppConfig:
    """Configuration for one search session.

    Values are read from environment variables when the instance is built
    through :func:`load_config`; a plain ``AppConfig()`` carries the defaults.
    """

    # ===== Embedding =====
    embedding_backend: str = "hash"  # hash | ollama | openai
    embedding_dim: int = 768
    embedding_model: str = "nomic-embed-text"
    ollama_base_url: str = "http://localhost:11434"
    openai_api_key: Optional[str] = field(default=None, repr=False)

    # ===== Vector store =====
    vector_store: str = "memory"  # memory | milvus
    milvus_uri: str = "./gistdex_vectors.db"
    milvus_collection: str = "gistdex_chunks"

    # ===== Search =====
    top_k: int = DEFAULT_TOP_K
    keyword_weight: float = DEFAULT_KEYWORD_WEIGHT
    rerank: bool = False
    rerank_boost: float = DEFAULT_RERANK_BOOST

    # ===== Planner =====
    stage_timeout_ms: int = DEFAULT_STAGE_TIMEOUT_MS
    max_stages: int = DEFAULT_MAX_STAGES
    min_score: float = DEFAULT_MIN_SCORE

    def __post_init__(self):
        if self.embedding_dim <= 0:
            raise ConfigurationError("embedding_dim must be positive")
        if self.top_k <= 0:
            raise ConfigurationError("top_k must be positive")
        if not 0.0 <= self.keyword_weight <= 1.0:
            raise ConfigurationError("keyword_weight must be within [0, 1]")
        if not 0.0 <= self.min_score <= 1.0:
            raise ConfigurationError("min_score must be within [0, 1]")
        if self.stage_timeout_ms <= 0:
            raise ConfigurationError("stage_timeout_ms must be positive")
        if self.max_stages <= 0:
            raise ConfigurationError("max_stages must be positive")

    def with_overrides(self, **overrides) -> "AppConfig":
        """Return a copy with the given (non-None) fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(env_file: Optional[str] = None, **overrides) -> AppConfig:
    """Build a fresh AppConfig from the environment (and an optional .env file).

    Args:
        env_file: Path of a dotenv file; defaults to ``.env`` discovery
        **overrides: Field values that take precedence over the environment

    Returns:
        A new AppConfig instance. Nothing is cached between calls.
    """
    load_dotenv(env_file)

    cfg = AppConfig(
        embedding_backend=os.getenv("GISTDEX_EMBEDDING_BACKEND", "hash"),
        embedding_dim=_env_int("GISTDEX_EMBEDDING_DIM", 768),
        embedding_model=os.getenv("GISTDEX_EMBEDDING_MODEL", "nomic-embed-text"),
        ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        vector_store=os.getenv("GISTDEX_VECTOR_STORE", "memory"),
        milvus_uri=os.getenv("GISTDEX_MILVUS_URI", "./gistdex_vectors.db"),
        milvus_collection=os.getenv("GISTDEX_MILVUS_COLLECTION", "gistdex_chunks"),
        top_k=_env_int("GISTDEX_TOP_K", DEFAULT_TOP_K),
        keyword_weight=_env_float("GISTDEX_KEYWORD_WEIGHT", DEFAULT_KEYWORD_WEIGHT),
        rerank=_env_bool("GISTDEX_RERANK"),
        rerank_boost=_env_float("GISTDEX_RERANK_BOOST", DEFAULT_RERANK_BOOST),
        stage_timeout_ms=_env_int("GISTDEX_STAGE_TIMEOUT_MS", DEFAULT_STAGE_TIMEOUT_MS),
        max_stages=_env_int("GISTDEX_MAX_STAGES", DEFAULT_MAX_STAGES),
        min_score=_env_float("GISTDEX_MIN_SCORE", DEFAULT_MIN_SCORE),
    )
    if overrides:
        cfg = cfg.with_overrides(**overrides)
    return cfg
