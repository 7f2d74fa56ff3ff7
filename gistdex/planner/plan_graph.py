"""LangGraph planning loop: execute -> route -> {refine -> execute | finish}"""

from operator import add
from typing import TYPE_CHECKING, Annotated, Any, Dict, List, TypedDict

from langgraph.graph import END, StateGraph

from ..core.interfaces import QueryExecutor
from ..core.types import (
    Plan,
    PlanExecutionResult,
    PlanStatus,
    RefinementMethod,
    ScoredResult,
    StageExecutionResult,
)

if TYPE_CHECKING:
    from .query_planner import ExecutionOptions, QueryPlanner


class PlanLoopState(TypedDict):
    """State carried between planning loop nodes"""

    # ========== 1. Plan ==========
    plan: Plan                                                  # current plan value (replaced, never mutated)

    # ========== 2. History ==========
    stage_results: Annotated[List[StageExecutionResult], add]   # one entry per executed stage
    consecutive_errors: int                                     # executor failures in a row

    # ========== 3. Best so far ==========
    best_results: List[ScoredResult]
    best_score: float


class PlanGraph:
    """
    Planning loop for one plan execution

    Nodes are bound to the planner, the executor and the execution options
    of a single ``QueryPlanner.execute_plan`` call.
    """

    def __init__(
        self,
        planner: "QueryPlanner",
        query_executor: QueryExecutor,
        exec_options: "ExecutionOptions",
        refinement_method: RefinementMethod,
    ):
        self.planner = planner
        self.query_executor = query_executor
        self.exec_options = exec_options
        self.refinement_method = refinement_method
        self.max_stages = exec_options.max_stages or planner.max_stages
        self.logger = planner.logger
        self.app = self._build()

    def _build(self):
        graph = StateGraph(PlanLoopState)

        graph.add_node("execute_stage", self.execute_stage_node)
        graph.add_node("refine_stage", self.refine_stage_node)
        graph.add_node("finish", self.finish_node)

        graph.set_entry_point("execute_stage")
        graph.add_conditional_edges(
            "execute_stage",
            self.route_conditional,
            {
                "refine": "refine_stage",
                "finish": "finish",
            },
        )
        graph.add_edge("refine_stage", "execute_stage")
        graph.add_edge("finish", END)

        return graph.compile()

    # ============ Nodes ============

    async def execute_stage_node(self, state: PlanLoopState) -> Dict[str, Any]:
        plan = state["plan"]
        stage_index = len(plan.stages) - 1
        result = await self.planner.execute_single_stage(
            plan, stage_index, self.query_executor, self.exec_options
        )

        update: Dict[str, Any] = {
            "stage_results": [result],
            "consecutive_errors": state["consecutive_errors"] + 1 if result.error else 0,
        }
        improved = result.evaluation.score > state["best_score"]
        if improved or (not state["best_results"] and result.results):
            update["best_results"] = result.results
            update["best_score"] = max(result.evaluation.score, state["best_score"])
        return update

    def refine_stage_node(self, state: PlanLoopState) -> Dict[str, Any]:
        plan = state["plan"]
        last = state["stage_results"][-1]
        stage = plan.stages[-1]
        refined = self.planner.refine_query(
            stage.query,
            last.evaluation,
            self.refinement_method,
            expected_keywords=stage.expected_results.keywords,
        )
        next_number = len(plan.stages)
        self.logger.info(f"Plan {plan.id}: stage {next_number} query '{refined}'")
        return {"plan": plan.append_stage(refined, f"Refined search iteration {next_number}")}

    def finish_node(self, state: PlanLoopState) -> Dict[str, Any]:
        last = state["stage_results"][-1]
        if last.evaluation.is_successful:
            status = PlanStatus.succeeded
        elif state["consecutive_errors"] >= self.exec_options.max_consecutive_errors:
            status = PlanStatus.failed
        else:
            status = PlanStatus.exhausted
        return {"plan": state["plan"].with_status(status)}

    # ============ Routing ============

    def route_conditional(self, state: PlanLoopState) -> str:
        last = state["stage_results"][-1]
        if last.evaluation.is_successful:
            return "finish"
        if state["consecutive_errors"] >= self.exec_options.max_consecutive_errors:
            self.logger.warning(
                f"Plan {state['plan'].id}: {state['consecutive_errors']} consecutive executor failures"
            )
            return "finish"
        if last.should_continue and len(state["plan"].stages) < self.max_stages:
            return "refine"
        return "finish"

    async def run(self, plan: Plan) -> PlanExecutionResult:
        initial: PlanLoopState = {
            "plan": plan,
            "stage_results": [],
            "consecutive_errors": 0,
            "best_results": [],
            "best_score": 0.0,
        }
        # each stage takes two steps (execute + refine), plus finish
        recursion_limit = 2 * max(self.max_stages, len(plan.stages)) + 5
        final = await self.app.ainvoke(initial, config={"recursion_limit": recursion_limit})
        return PlanExecutionResult(
            plan=final["plan"],
            stages=final["stage_results"],
            best_results=final["best_results"],
            best_score=final["best_score"],
        )
