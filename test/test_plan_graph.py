"""
Tests for the multi-stage planning loop (QueryPlanner.execute_plan).
"""

import asyncio

import pytest

from conftest import result
from gistdex.core.exceptions import PlanStateError
from gistdex.core.types import PlanStatus
from gistdex.planner.query_planner import ExecutionOptions, QueryPlanner


def test_successful_first_stage_stops_loop():
    planner = QueryPlanner()
    plan = planner.generate_plan("vector database")
    seen = []

    async def executor(query):
        seen.append(query)
        return [result("1", "vector database configuration", 0.95)]

    outcome = asyncio.run(planner.execute_plan(plan, executor))
    assert outcome.plan.status == PlanStatus.succeeded
    assert outcome.succeeded
    assert len(outcome.stages) == 1
    assert outcome.stages[0].stage.stage_number == 0
    assert len(outcome.plan.stages) == 1
    assert seen == ["vector database"]
    assert [r.id for r in outcome.best_results] == ["1"]
    assert outcome.best_score == pytest.approx(0.6 + 0.4 * 0.95)
    # the caller's plan value is untouched
    assert plan.status == PlanStatus.pending


def test_loop_refines_until_exhausted():
    planner = QueryPlanner(max_stages=3)
    plan = planner.generate_plan("vector database")
    seen = []

    async def executor(query):
        seen.append(query)
        return [result("x", "unrelated text", 0.2)]

    outcome = asyncio.run(planner.execute_plan(plan, executor))
    assert outcome.plan.status == PlanStatus.exhausted
    assert [s.stage_number for s in outcome.plan.stages] == [0, 1, 2]
    assert len(outcome.stages) == 3
    assert len(seen) == 3
    for previous, current in zip(seen, seen[1:]):
        assert current != previous
        assert current.startswith(previous)
    assert outcome.plan.stages[1].expected_results == outcome.plan.stages[0].expected_results


def test_every_refined_stage_adds_new_terms():
    planner = QueryPlanner(max_stages=4)
    plan = planner.generate_plan("vector database")
    seen = []

    async def executor(query):
        seen.append(query)
        return [result("x", "unrelated text", 0.2)]

    asyncio.run(planner.execute_plan(plan, executor))
    assert len(seen) == 4
    for previous, current in zip(seen, seen[1:]):
        assert set(current.split()) - set(previous.split())
        assert len(current.split()) == len(set(current.split()))


def test_loop_succeeds_after_refinement():
    planner = QueryPlanner()
    plan = planner.generate_plan("vector database")

    async def executor(query):
        if "configuration" in query:
            return [result("good", "vector database configuration", 0.9)]
        return [result("bad", "nothing useful", 0.1)]

    outcome = asyncio.run(planner.execute_plan(plan, executor))
    assert outcome.plan.status == PlanStatus.succeeded
    assert len(outcome.plan.stages) == 2
    assert outcome.best_results[0].id == "good"


def test_consecutive_executor_failures_fail_the_plan():
    planner = QueryPlanner()
    plan = planner.generate_plan("vector database")

    async def broken(query):
        raise ConnectionError("store offline")

    outcome = asyncio.run(planner.execute_plan(plan, broken))
    assert outcome.plan.status == PlanStatus.failed
    assert len(outcome.stages) == 2
    assert all(s.error for s in outcome.stages)
    assert outcome.best_results == []


def test_single_failure_is_recovered():
    planner = QueryPlanner()
    plan = planner.generate_plan("vector database")
    calls = []

    async def flaky(query):
        calls.append(query)
        if len(calls) == 1:
            raise ConnectionError("transient")
        return [result("1", "vector database", 0.9)]

    outcome = asyncio.run(planner.execute_plan(plan, flaky))
    assert outcome.plan.status == PlanStatus.succeeded
    assert outcome.stages[0].error == "transient"
    assert outcome.stages[1].error is None


def test_timeouts_count_against_stage_budget():
    planner = QueryPlanner(max_stages=2)
    plan = planner.generate_plan("vector database")

    async def slow(query):
        await asyncio.sleep(0.2)
        return [result("1", "vector database", 0.9)]

    outcome = asyncio.run(planner.execute_plan(plan, slow, ExecutionOptions(timeout_ms=20)))
    assert outcome.plan.status == PlanStatus.exhausted
    assert all(s.timed_out for s in outcome.stages)
    assert len(outcome.stages) == 2


def test_refinement_method_override():
    planner = QueryPlanner(max_stages=2)
    plan = planner.generate_plan("vector database")
    seen = []

    async def executor(query):
        seen.append(query)
        return [result("x", "unrelated", 0.1)]

    asyncio.run(planner.execute_plan(plan, executor, refinement_method="semantic"))
    assert seen[1] == "vector database documentation guide tutorial"


def test_terminal_plan_cannot_be_executed_again():
    planner = QueryPlanner()
    plan = planner.generate_plan("vector database")

    async def executor(query):
        return [result("1", "vector database", 0.9)]

    outcome = asyncio.run(planner.execute_plan(plan, executor))
    with pytest.raises(PlanStateError):
        asyncio.run(planner.execute_plan(outcome.plan, executor))
