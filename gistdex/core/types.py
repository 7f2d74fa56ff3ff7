"""Core data types for the retrieval and planning core."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .exceptions import PlanStateError

Vector = List[float]
MetadataFilter = Dict[str, Any]
RefinementMethod = Literal["keywords", "semantic", "hybrid"]


@dataclass(frozen=True)
class ScoredResult:
    """A ranked piece of content returned by a vector store or the engine."""
    id: str
    content: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_score(self, score: float) -> "ScoredResult":
        return replace(self, score=float(score))


@dataclass(frozen=True)
class SearchOptions:
    """Options for a single semantic or hybrid search."""
    k: int = 5
    filter: Optional[MetadataFilter] = None
    keyword_weight: float = 0.3
    rerank: bool = False
    boost_factor: float = 0.1

    def __post_init__(self):
        if not isinstance(self.k, int) or self.k <= 0:
            raise ValueError(f"k must be a positive integer, got {self.k!r}")
        if not 0.0 <= self.keyword_weight <= 1.0:
            raise ValueError(f"keyword_weight must be within [0, 1], got {self.keyword_weight}")


class PlanStatus(str, Enum):
    pending = "pending"
    running = "running"
    succeeded = "succeeded"
    failed = "failed"
    exhausted = "exhausted"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = {PlanStatus.succeeded, PlanStatus.failed, PlanStatus.exhausted}

_ALLOWED_TRANSITIONS = {
    PlanStatus.pending: {PlanStatus.running},
    PlanStatus.running: _TERMINAL_STATUSES,
}


# ============ Plan state (pydantic, serializable) ============

class ExpectedResults(BaseModel):
    """Success criteria attached to one stage."""
    keywords: List[str]
    patterns: List[str] = Field(default_factory=list)
    min_confidence: float = Field(ge=0.0, le=1.0)
    min_matches: int = Field(ge=0)

    @field_validator("keywords")
    @classmethod
    def _dedupe_keywords(cls, v: List[str]) -> List[str]:
        seen: set[str] = set()
        out: List[str] = []
        for kw in v:
            if kw and kw not in seen:
                seen.add(kw)
                out.append(kw)
        return out


class PlanStage(BaseModel):
    stage_number: int = Field(ge=0)
    description: str
    query: str
    expected_results: ExpectedResults


class EvaluationCriteria(BaseModel):
    min_score: float = Field(ge=0.0, le=1.0)


class Plan(BaseModel):
    """A multi-stage search session pursuing one goal.

    Plans are treated as values: the helpers below return updated copies and
    never touch the instance they are called on.
    """
    id: str
    goal: str
    status: PlanStatus = PlanStatus.pending
    stages: List[PlanStage]
    evaluation_criteria: EvaluationCriteria
    refinement_method: RefinementMethod = "hybrid"

    @model_validator(mode="after")
    def _check_stage_numbers(self) -> "Plan":
        for i, stage in enumerate(self.stages):
            if stage.stage_number != i:
                raise ValueError(
                    f"stage numbers must be contiguous from 0 (index {i} has {stage.stage_number})"
                )
        return self

    @property
    def current_stage(self) -> Optional[PlanStage]:
        return self.stages[-1] if self.stages else None

    def with_status(self, status: PlanStatus) -> "Plan":
        """Return a copy moved to ``status``; only forward transitions are legal."""
        status = PlanStatus(status)
        if status == self.status:
            return self
        if status not in _ALLOWED_TRANSITIONS.get(self.status, set()):
            raise PlanStateError(
                f"Plan {self.id}: illegal transition {self.status.value} -> {status.value}"
            )
        return self.model_copy(update={"status": status})

    def append_stage(
        self,
        query: str,
        description: str,
        expected_results: Optional[ExpectedResults] = None,
    ) -> "Plan":
        """Return a copy with a new stage numbered after the last one."""
        if self.status.is_terminal:
            raise PlanStateError(f"Plan {self.id} is {self.status.value}; cannot add stages")
        last = self.current_stage
        if expected_results is None:
            if last is None:
                raise PlanStateError("expected_results required for the first stage")
            expected_results = last.expected_results
        stage = PlanStage(
            stage_number=len(self.stages),
            description=description,
            query=query,
            expected_results=expected_results.model_copy(deep=True),
        )
        return self.model_copy(update={"stages": [*self.stages, stage]})


class StageEvaluation(BaseModel):
    """Verdict on whether a stage's results satisfy its criteria."""
    score: float = Field(ge=0.0, le=1.0)
    keyword_matches: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    feedback: str
    is_successful: bool
    suggestions: List[str] = Field(default_factory=list)


# ============ Execution results ============

@dataclass
class StageExecutionResult:
    stage: PlanStage
    results: List[ScoredResult]
    evaluation: StageEvaluation
    should_continue: bool
    timed_out: bool = False
    error: Optional[str] = None
    elapsed_ms: float = 0.0
    # raw executor exception; `error` holds its message
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)


@dataclass
class PlanExecutionResult:
    """Outcome of a full planning loop."""
    plan: Plan
    stages: List[StageExecutionResult] = field(default_factory=list)
    best_results: List[ScoredResult] = field(default_factory=list)
    best_score: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.plan.status == PlanStatus.succeeded
