"""Fixed, non-adaptive query chains executed stage by stage through a session."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ..core.types import MetadataFilter, ScoredResult
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from ..session import SearchSession

ResultProcessor = Callable[[List[ScoredResult]], List[ScoredResult]]

DEFAULT_HYBRID_K = 10
DEFAULT_SEMANTIC_K = 5
PREVIEW_CHARS = 200
TOP_RESULTS_PER_STAGE = 3

logger = get_logger("query_chain")


@dataclass
class QueryStage:
    query: str
    hybrid: bool = False
    k: Optional[int] = None
    description: Optional[str] = None
    filter: Optional[MetadataFilter] = None
    process_result: Optional[ResultProcessor] = None


@dataclass
class QueryChain:
    topic: str
    stages: List[QueryStage] = field(default_factory=list)


@dataclass
class ChainStageResult:
    stage_number: int  # 1-based
    query: str
    description: Optional[str]
    results: List[ScoredResult]


@dataclass
class ChainResult:
    topic: str
    stages: List[ChainStageResult]
    combined_results: List[ScoredResult]
    timestamp: str


async def execute_query_chain(chain: QueryChain, session: "SearchSession") -> ChainResult:
    """
    Run every stage of a chain sequentially.

    Args:
        chain: Topic plus ordered stages
        session: Open search session used for each stage

    Returns:
        ChainResult with per-stage results and all results concatenated
    """
    stages: List[ChainStageResult] = []
    combined: List[ScoredResult] = []

    for i, stage in enumerate(chain.stages):
        if stage.hybrid:
            results = await session.hybrid_search(
                stage.query, k=stage.k or DEFAULT_HYBRID_K, filter=stage.filter
            )
        else:
            results = await session.semantic_search(
                stage.query, k=stage.k or DEFAULT_SEMANTIC_K, filter=stage.filter
            )

        if stage.process_result is not None:
            results = stage.process_result(results)

        logger.debug(f"Chain '{chain.topic}' stage {i + 1}: {len(results)} results")
        stages.append(
            ChainStageResult(
                stage_number=i + 1,
                query=stage.query,
                description=stage.description,
                results=results,
            )
        )
        combined.extend(results)

    return ChainResult(
        topic=chain.topic,
        stages=stages,
        combined_results=combined,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def format_topic(topic: str) -> str:
    """``typescript-setupGuide`` -> ``TypeScript Setup Guide``"""
    spaced = re.sub(r"([A-Z])", r" \1", topic)
    words = [w.strip() for w in re.split(r"[-_\s]", spaced) if w.strip()]
    out = []
    for word in words:
        lower = word.lower()
        if lower == "typescript":
            out.append("TypeScript")
        elif lower == "javascript":
            out.append("JavaScript")
        else:
            out.append(word[:1].upper() + word[1:].lower())
    return " ".join(out)


def build_structured_result(chain_result: ChainResult) -> Dict[str, Any]:
    """Render a chain result as a markdown document plus summary metadata."""
    lines = [f"# {format_topic(chain_result.topic)}", ""]

    if not chain_result.stages or not chain_result.combined_results:
        lines.append("No results found for this query chain.")
    else:
        lines += ["## Query Chain Results", "", f"Generated: {chain_result.timestamp}", ""]

        for stage in chain_result.stages:
            title = stage.description or f"Query {stage.stage_number}"
            title = re.sub(r"^Stage \d+: ", "", title)
            lines += [
                f"### Stage {stage.stage_number}: {title}",
                "",
                f'**Query**: "{stage.query}"',
                f"**Results**: {len(stage.results)} items",
                "",
            ]
            if stage.results:
                lines += ["#### Top Results:", ""]
                for result in stage.results[:TOP_RESULTS_PER_STAGE]:
                    preview = result.content[:PREVIEW_CHARS]
                    if len(preview) < len(result.content):
                        preview += "..."
                    lines.append(f"- {preview.replace(chr(10), ' ')}")
                    if result.score:
                        lines.append(f"  - Score: {result.score:.3f}")
                lines.append("")

        lines += [
            "## Combined Summary",
            "",
            f"Total results: {len(chain_result.combined_results)}",
            f"Query stages executed: {len(chain_result.stages)}",
        ]

    return {
        "topic": chain_result.topic,
        "content": "\n".join(lines),
        "metadata": {
            "query_count": len(chain_result.stages),
            "result_count": len(chain_result.combined_results),
            "timestamp": chain_result.timestamp,
            "queries": [s.query for s in chain_result.stages],
        },
    }
