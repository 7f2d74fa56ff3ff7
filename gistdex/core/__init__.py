"""Core types, interfaces, and exceptions for gistdex."""

from .types import (
    Vector,
    MetadataFilter,
    RefinementMethod,
    ScoredResult,
    SearchOptions,
    PlanStatus,
    ExpectedResults,
    PlanStage,
    EvaluationCriteria,
    Plan,
    StageEvaluation,
    StageExecutionResult,
    PlanExecutionResult,
)
from .interfaces import Embedder, VectorStore, QueryExecutor
from .registry import AdapterRegistry, AdapterSpec
from .exceptions import (
    GistdexError,
    ConfigurationError,
    UnknownAdapterError,
    RetrievalError,
    EmbeddingError,
    StoreUnavailableError,
    DimensionMismatchError,
    PlanStateError,
)

__all__ = [
    # Types
    "Vector",
    "MetadataFilter",
    "RefinementMethod",
    "ScoredResult",
    "SearchOptions",
    "PlanStatus",
    "ExpectedResults",
    "PlanStage",
    "EvaluationCriteria",
    "Plan",
    "StageEvaluation",
    "StageExecutionResult",
    "PlanExecutionResult",
    # Interfaces
    "Embedder",
    "VectorStore",
    "QueryExecutor",
    # Registries
    "AdapterRegistry",
    "AdapterSpec",
    # Exceptions
    "GistdexError",
    "ConfigurationError",
    "UnknownAdapterError",
    "RetrievalError",
    "EmbeddingError",
    "StoreUnavailableError",
    "DimensionMismatchError",
    "PlanStateError",
]
