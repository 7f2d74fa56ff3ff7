"""
Query planner - goal-driven multi-stage search

Contains:
- PlannerOptions / ExecutionOptions: caller-facing knobs
- QueryPlanner: plan generation, stage evaluation, query refinement,
  deadline-bounded stage execution and the full planning loop
"""

from __future__ import annotations

import asyncio
import re
import time
import uuid
from typing import List, Literal, Optional, Sequence, Set

from pydantic import BaseModel, Field, field_validator

from ..config.constants import (
    CONFIDENCE_TOP_N,
    DEFAULT_MAX_CONSECUTIVE_ERRORS,
    DEFAULT_MAX_STAGES,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_MATCHES,
    DEFAULT_MIN_SCORE,
    DEFAULT_STAGE_TIMEOUT_MS,
    EVALUATION_WEIGHTS,
    REFINEMENT_QUALIFIERS,
)
from ..config.settings import AppConfig
from ..core.exceptions import PlanStateError
from ..core.interfaces import QueryExecutor
from ..core.types import (
    EvaluationCriteria,
    ExpectedResults,
    Plan,
    PlanExecutionResult,
    PlanStage,
    PlanStatus,
    RefinementMethod,
    ScoredResult,
    StageEvaluation,
    StageExecutionResult,
)
from ..retrieval.rankers import sort_by_score
from ..utils.logging import get_logger
from ..utils.text import extract_keywords, normalize_whitespace
from .plan_graph import PlanGraph

REFINEMENT_METHODS = ("keywords", "semantic", "hybrid")

SUGGEST_SPECIFIC = "add more specific keywords"
SUGGEST_BROADEN = "broaden search criteria"
SUGGEST_MISSING = "include missing terms: "
SUGGEST_SYNONYMS = "use synonyms or related terms"


# ============ Options ============

class ExpectedResultsOptions(BaseModel):
    keywords: Optional[List[str]] = None
    min_matches: Optional[int] = Field(default=None, ge=0)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    content_patterns: List[str] = Field(default_factory=list)

    @field_validator("content_patterns")
    @classmethod
    def _check_patterns(cls, v: List[str]) -> List[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid content pattern {pattern!r}: {e}") from e
        return v


class StrategyOptions(BaseModel):
    initial_mode: Literal["broad", "specific"] = "broad"
    refinement_method: RefinementMethod = "hybrid"
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class PlannerOptions(BaseModel):
    """Options accepted by ``QueryPlanner.generate_plan``."""
    expected_results: ExpectedResultsOptions = Field(default_factory=ExpectedResultsOptions)
    strategy: StrategyOptions = Field(default_factory=StrategyOptions)


class ExecutionOptions(BaseModel):
    """Per-call execution limits. Unset values fall back to the planner's defaults."""
    timeout_ms: Optional[int] = Field(default=None, gt=0)
    max_stages: Optional[int] = Field(default=None, gt=0)
    max_consecutive_errors: int = Field(default=DEFAULT_MAX_CONSECUTIVE_ERRORS, gt=0)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _unused_qualifier(present: Set[str]) -> List[str]:
    """First refinement qualifier sharing no word with the query, or []."""
    for phrase in REFINEMENT_QUALIFIERS.values():
        words = phrase.split()
        if not any(w in present for w in words):
            return words
    return []


async def _run_executor(query_executor: QueryExecutor, query: str) -> List[ScoredResult]:
    # Awaited inside the task so a synchronous raise is captured like any other failure
    return list(await query_executor(query))


def _discard_outcome(task: "asyncio.Task") -> None:
    if not task.cancelled():
        task.exception()


class QueryPlanner:
    """
    Query planner

    Turns an open-ended goal into a Plan, judges each stage's results against
    the stage's own expectations and rewrites the query until the goal is met
    or the stage budget runs out. Plans are never modified in place.
    """

    def __init__(
        self,
        default_timeout_ms: int = DEFAULT_STAGE_TIMEOUT_MS,
        max_stages: int = DEFAULT_MAX_STAGES,
        min_score: float = DEFAULT_MIN_SCORE,
        trace_id: Optional[str] = None,
    ):
        if default_timeout_ms <= 0:
            raise ValueError("default_timeout_ms must be positive")
        if max_stages <= 0:
            raise ValueError("max_stages must be positive")
        self.default_timeout_ms = default_timeout_ms
        self.max_stages = max_stages
        self.min_score = min_score
        self.logger = get_logger("QueryPlanner", trace_id)

    @classmethod
    def from_config(cls, config: AppConfig, trace_id: Optional[str] = None) -> "QueryPlanner":
        return cls(
            default_timeout_ms=config.stage_timeout_ms,
            max_stages=config.max_stages,
            min_score=config.min_score,
            trace_id=trace_id,
        )

    # ============ Plan generation ============

    def generate_plan(self, goal: str, options: Optional[PlannerOptions] = None) -> Plan:
        """
        Create a pending Plan with a single seed stage.

        Args:
            goal: What the caller is trying to find
            options: Expected results and strategy overrides

        Returns:
            A new Plan in ``pending`` status
        """
        goal = normalize_whitespace(goal or "")
        if not goal:
            raise ValueError("goal must not be empty")

        opts = options or PlannerOptions()
        expected = opts.expected_results
        strategy = opts.strategy

        keywords = expected.keywords or extract_keywords(goal)
        if strategy.initial_mode == "broad":
            query = " ".join(keywords[:2])
        else:
            query = " ".join(keywords)

        min_confidence = expected.confidence if expected.confidence is not None else DEFAULT_MIN_CONFIDENCE
        min_matches = expected.min_matches if expected.min_matches is not None else DEFAULT_MIN_MATCHES
        if strategy.confidence is not None:
            min_score = strategy.confidence
        elif expected.confidence is not None:
            min_score = expected.confidence
        else:
            min_score = self.min_score

        plan = Plan(
            id=uuid.uuid4().hex,
            goal=goal,
            stages=[
                PlanStage(
                    stage_number=0,
                    description="Initial search",
                    query=query or goal,
                    expected_results=ExpectedResults(
                        keywords=keywords,
                        patterns=expected.content_patterns,
                        min_confidence=min_confidence,
                        min_matches=min_matches,
                    ),
                )
            ],
            evaluation_criteria=EvaluationCriteria(min_score=min_score),
            refinement_method=strategy.refinement_method,
        )
        self.logger.info(f"Generated plan {plan.id} for goal '{goal}' (keywords={keywords})")
        return plan

    # ============ Evaluation ============

    def evaluate_stage(self, stage: PlanStage, results: Sequence[ScoredResult]) -> StageEvaluation:
        """
        Judge a stage's results against the stage's own expected results.

        Args:
            stage: The stage that produced the results
            results: Results returned for the stage's query

        Returns:
            StageEvaluation with score, feedback and refinement suggestions
        """
        expected = stage.expected_results

        if not results:
            suggestions = [SUGGEST_BROADEN, SUGGEST_SYNONYMS]
            if expected.keywords:
                suggestions.append(SUGGEST_MISSING + ", ".join(expected.keywords))
            return StageEvaluation(
                score=0.0,
                keyword_matches=0,
                confidence=0.0,
                feedback=(
                    "No results found. "
                    f"Keyword coverage below expected (0/{expected.min_matches}). "
                    f"Score below expected (0.00 < {expected.min_confidence})"
                ),
                is_successful=False,
                suggestions=suggestions,
            )

        haystack = "\n".join(r.content or "" for r in results).lower()
        matched = [kw for kw in expected.keywords if kw.lower() in haystack]
        missing = [kw for kw in expected.keywords if kw.lower() not in haystack]
        matches = len(matched)

        top = sort_by_score(results)[:CONFIDENCE_TOP_N]
        confidence = _clamp(sum(r.score for r in top) / len(top))

        match_ratio = min(1.0, matches / max(1, expected.min_matches))
        score = _clamp(
            EVALUATION_WEIGHTS["w_keywords"] * match_ratio
            + EVALUATION_WEIGHTS["w_confidence"] * confidence
        )
        is_successful = score >= expected.min_confidence and matches >= expected.min_matches

        parts: List[str] = []
        if matches < expected.min_matches:
            parts.append(f"Keyword coverage below expected ({matches}/{expected.min_matches})")
        if score < expected.min_confidence:
            parts.append(f"Score below expected ({score:.2f} < {expected.min_confidence})")
        if expected.patterns:
            found = sum(1 for p in expected.patterns if re.search(p, haystack, re.IGNORECASE))
            parts.append(f"Pattern coverage {found}/{len(expected.patterns)}")
        if is_successful:
            parts.insert(0, "Results meet expectations")

        suggestions: List[str] = []
        if not is_successful:
            if matches < expected.min_matches:
                suggestions.append(SUGGEST_SPECIFIC)
            if len(results) < expected.min_matches:
                suggestions.append(SUGGEST_BROADEN)
            if missing:
                suggestions.append(SUGGEST_MISSING + ", ".join(missing))
            if confidence < expected.min_confidence:
                suggestions.append(SUGGEST_SYNONYMS)
            if not suggestions:
                suggestions.append(SUGGEST_SPECIFIC)

        return StageEvaluation(
            score=score,
            keyword_matches=matches,
            confidence=confidence,
            feedback=". ".join(parts),
            is_successful=is_successful,
            suggestions=suggestions,
        )

    # ============ Refinement ============

    @staticmethod
    def _append_terms(query: str, terms: Sequence[str]) -> str:
        present = set(query.lower().split())
        fresh = [t for t in terms if t and t.lower() not in present]
        if not fresh:
            fresh = _unused_qualifier(present) or list(terms)
        return normalize_whitespace(" ".join([query, *fresh]))

    @staticmethod
    def _missing_from_suggestions(evaluation: StageEvaluation) -> List[str]:
        for suggestion in evaluation.suggestions:
            if suggestion.startswith(SUGGEST_MISSING):
                return [t.strip() for t in suggestion[len(SUGGEST_MISSING):].split(",") if t.strip()]
        return []

    def _refine_keywords(
        self,
        query: str,
        evaluation: StageEvaluation,
        expected_keywords: Optional[Sequence[str]],
    ) -> str:
        present = set(query.lower().split())
        for candidates in (self._missing_from_suggestions(evaluation), expected_keywords or []):
            terms = [t for t in candidates if t.lower() not in present]
            if terms:
                return self._append_terms(query, terms)

        if SUGGEST_SPECIFIC in evaluation.suggestions:
            qualifier = REFINEMENT_QUALIFIERS["specific"]
        else:
            qualifier = REFINEMENT_QUALIFIERS["fallback"]
        return self._append_terms(query, qualifier.split())

    def _refine_semantic(self, query: str, evaluation: StageEvaluation) -> str:
        key = "broad_low" if evaluation.score < 0.5 else "broad_high"
        return self._append_terms(query, REFINEMENT_QUALIFIERS[key].split())

    def _refine_hybrid(
        self,
        query: str,
        evaluation: StageEvaluation,
        expected_keywords: Optional[Sequence[str]],
    ) -> str:
        refined = self._refine_keywords(query, evaluation, expected_keywords)
        if evaluation.score < 0.5:
            refined = self._append_terms(refined, REFINEMENT_QUALIFIERS["hybrid_low"].split())
        return refined

    def _refine(
        self,
        method: str,
        query: str,
        evaluation: StageEvaluation,
        expected_keywords: Optional[Sequence[str]],
    ) -> str:
        if method == "keywords":
            return self._refine_keywords(query, evaluation, expected_keywords)
        if method == "semantic":
            return self._refine_semantic(query, evaluation)
        return self._refine_hybrid(query, evaluation, expected_keywords)

    def refine_query(
        self,
        query: str,
        evaluation: StageEvaluation,
        method: RefinementMethod = "hybrid",
        expected_keywords: Optional[Sequence[str]] = None,
    ) -> str:
        """
        Rewrite a query after an evaluation.

        The result always differs from ``query``, only ever adds terms, and
        differs between methods for the same inputs.

        Args:
            query: The query that was executed
            evaluation: Its evaluation
            method: ``keywords``, ``semantic`` or ``hybrid``
            expected_keywords: The stage's expected keywords, used as missing terms

        Returns:
            The refined query
        """
        if method not in REFINEMENT_METHODS:
            raise ValueError(f"Unknown refinement method {method!r}; expected one of {REFINEMENT_METHODS}")

        query = normalize_whitespace(query)
        refined = self._refine(method, query, evaluation, expected_keywords)
        others = {
            self._refine(other, query, evaluation, expected_keywords)
            for other in REFINEMENT_METHODS
            if other != method
        }
        if refined in others or refined == query:
            refined = f"{refined} {REFINEMENT_QUALIFIERS[method + '_tag']}"

        self.logger.debug(f"Refined ({method}) '{query}' -> '{refined}'")
        return refined

    # ============ Execution ============

    async def execute_single_stage(
        self,
        plan: Plan,
        stage_index: int,
        query_executor: QueryExecutor,
        exec_options: Optional[ExecutionOptions] = None,
    ) -> StageExecutionResult:
        """
        Run one stage's query under a deadline and evaluate the outcome.

        Executor failures and timeouts are reported in the returned result,
        never raised. The plan itself is left untouched.
        """
        if not 0 <= stage_index < len(plan.stages):
            raise IndexError(f"Stage index {stage_index} out of range for plan {plan.id} ({len(plan.stages)} stages)")

        opts = exec_options or ExecutionOptions()
        timeout_ms = opts.timeout_ms or self.default_timeout_ms
        max_stages = opts.max_stages or self.max_stages
        stage = plan.stages[stage_index]
        has_budget = stage_index + 1 < max_stages

        started = time.perf_counter()
        task = asyncio.ensure_future(_run_executor(query_executor, stage.query))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            task.cancel()
            task.add_done_callback(_discard_outcome)
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000

        if task not in done:
            task.cancel()
            task.add_done_callback(_discard_outcome)
            self.logger.warning(f"Stage {stage_index} of plan {plan.id} timed out after {timeout_ms}ms")
            return StageExecutionResult(
                stage=stage,
                results=[],
                evaluation=self.evaluate_stage(stage, []),
                should_continue=True,
                timed_out=True,
                elapsed_ms=elapsed_ms,
            )

        error: Optional[BaseException]
        if task.cancelled():
            error = asyncio.CancelledError("query executor was cancelled")
        else:
            error = task.exception()

        if error is not None:
            self.logger.warning(f"Stage {stage_index} of plan {plan.id} failed: {error!r}")
            base = self.evaluate_stage(stage, [])
            evaluation = base.model_copy(update={"feedback": f"Query execution failed: {error}. {base.feedback}"})
            return StageExecutionResult(
                stage=stage,
                results=[],
                evaluation=evaluation,
                should_continue=has_budget,
                error=str(error) or type(error).__name__,
                exception=error,
                elapsed_ms=elapsed_ms,
            )

        results = sort_by_score(task.result())
        evaluation = self.evaluate_stage(stage, results)
        self.logger.info(
            f"Stage {stage_index} of plan {plan.id}: {len(results)} results, "
            f"score={evaluation.score:.2f}, successful={evaluation.is_successful}"
        )
        return StageExecutionResult(
            stage=stage,
            results=results,
            evaluation=evaluation,
            should_continue=not evaluation.is_successful and has_budget,
            elapsed_ms=elapsed_ms,
        )

    async def execute_plan(
        self,
        plan: Plan,
        query_executor: QueryExecutor,
        exec_options: Optional[ExecutionOptions] = None,
        refinement_method: Optional[RefinementMethod] = None,
    ) -> PlanExecutionResult:
        """
        Run the planning loop until the plan succeeds, fails or exhausts its stages.

        Args:
            plan: A pending (or running) plan
            query_executor: Async callable mapping a query to results
            exec_options: Timeout and stage budget
            refinement_method: Overrides the plan's own refinement method

        Returns:
            PlanExecutionResult holding the terminal plan and every stage result
        """
        if plan.status.is_terminal:
            raise PlanStateError(f"Plan {plan.id} is already {plan.status.value}")
        if not plan.stages:
            raise PlanStateError(f"Plan {plan.id} has no stages")

        method = refinement_method or plan.refinement_method
        if method not in REFINEMENT_METHODS:
            raise ValueError(f"Unknown refinement method {method!r}")

        graph = PlanGraph(self, query_executor, exec_options or ExecutionOptions(), method)
        result = await graph.run(plan.with_status(PlanStatus.running))
        self.logger.info(
            f"Plan {plan.id} finished as {result.plan.status.value} after {len(result.stages)} stages "
            f"(best score {result.best_score:.2f})"
        )
        return result
