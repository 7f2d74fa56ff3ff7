"""
Tests for fixed query chains.
"""

import asyncio

from conftest import result
from gistdex.planner.query_chain import (
    ChainResult,
    ChainStageResult,
    QueryChain,
    QueryStage,
    build_structured_result,
    execute_query_chain,
    format_topic,
)


class RecordingSession:
    """Stands in for SearchSession and records how each stage was run."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def semantic_search(self, query, k=None, filter=None):
        self.calls.append(("semantic", query, k, filter))
        return self.responses.pop(0)

    async def hybrid_search(self, query, k=None, filter=None):
        self.calls.append(("hybrid", query, k, filter))
        return self.responses.pop(0)


def test_execute_query_chain_runs_stages_in_order():
    session = RecordingSession([
        [result("1", "Result 1 from stage 1", 0.9), result("2", "Result 2 from stage 1", 0.8)],
        [result("3", "Result 1 from stage 2", 0.95)],
        [result("4", "Detailed result from stage 3", 0.99)],
    ])
    chain = QueryChain(
        topic="test-topic",
        stages=[
            QueryStage("initial broad search", hybrid=True, k=20, description="Stage 1: Broad keyword discovery"),
            QueryStage("refined search", description="Stage 2: Semantic search",
                       process_result=lambda results: results[:1]),
            QueryStage("specific detail search", k=3, filter={"lang": "en"}),
        ],
    )

    outcome = asyncio.run(execute_query_chain(chain, session))
    assert outcome.topic == "test-topic"
    assert [s.stage_number for s in outcome.stages] == [1, 2, 3]
    assert outcome.stages[0].description == "Stage 1: Broad keyword discovery"
    assert len(outcome.stages[0].results) == 2
    assert [r.id for r in outcome.combined_results] == ["1", "2", "3", "4"]
    assert session.calls == [
        ("hybrid", "initial broad search", 20, None),
        ("semantic", "refined search", 5, None),
        ("semantic", "specific detail search", 3, {"lang": "en"}),
    ]
    assert outcome.timestamp.endswith("+00:00")


def test_process_result_is_applied():
    session = RecordingSession([[result("1", "a", 0.5), result("2", "b", 0.4)]])
    chain = QueryChain("topic", [QueryStage("q", process_result=lambda rs: [r for r in rs if r.id == "2"])])
    outcome = asyncio.run(execute_query_chain(chain, session))
    assert [r.id for r in outcome.stages[0].results] == ["2"]


def test_build_structured_result():
    chain_result = ChainResult(
        topic="typescript-setupGuide",
        stages=[ChainStageResult(1, "tsconfig", "Stage 1: Config", [result("1", "x" * 250, 0.91)])],
        combined_results=[result("1", "x" * 250, 0.91)],
        timestamp="2026-01-01T00:00:00+00:00",
    )
    structured = build_structured_result(chain_result)
    content = structured["content"]
    assert content.startswith("# TypeScript Setup Guide")
    assert "### Stage 1: Config" in content
    assert "x" * 200 + "..." in content
    assert "Score: 0.910" in content
    assert structured["metadata"]["queries"] == ["tsconfig"]


def test_build_structured_result_without_results():
    empty = ChainResult(topic="empty", stages=[], combined_results=[], timestamp="t")
    assert "No results found for this query chain." in build_structured_result(empty)["content"]


def test_format_topic():
    assert format_topic("javascript_basics") == "JavaScript Basics"
