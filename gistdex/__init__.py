"""
gistdex - semantic/hybrid retrieval and goal-driven query planning

Public surface:
- SearchSession: open a session over the configured embedder and vector store
- RetrievalEngine: semantic and hybrid search
- QueryPlanner: multi-stage planning loop
"""

from .config import AppConfig, load_config
from .core import (
    GistdexError,
    Plan,
    PlanStatus,
    ScoredResult,
    SearchOptions,
)
from .retrieval import RetrievalEngine
from .planner import ExecutionOptions, PlannerOptions, QueryPlanner
from .session import SearchSession

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Config
    "AppConfig",
    "load_config",
    # Core
    "GistdexError",
    "Plan",
    "PlanStatus",
    "ScoredResult",
    "SearchOptions",
    # Components
    "RetrievalEngine",
    "QueryPlanner",
    "PlannerOptions",
    "ExecutionOptions",
    "SearchSession",
]
