"""
Query planning

- QueryPlanner: adaptive multi-stage planning loop
- query_chain: fixed sequences of queries
"""

from .query_planner import (
    ExecutionOptions,
    ExpectedResultsOptions,
    PlannerOptions,
    QueryPlanner,
    StrategyOptions,
)
from .plan_graph import PlanGraph, PlanLoopState
from .query_chain import (
    ChainResult,
    ChainStageResult,
    QueryChain,
    QueryStage,
    build_structured_result,
    execute_query_chain,
)

__all__ = [
    # Planner
    "QueryPlanner",
    "PlannerOptions",
    "ExpectedResultsOptions",
    "StrategyOptions",
    "ExecutionOptions",
    "PlanGraph",
    "PlanLoopState",
    # Query chains
    "QueryChain",
    "QueryStage",
    "ChainStageResult",
    "ChainResult",
    "execute_query_chain",
    "build_structured_result",
]
