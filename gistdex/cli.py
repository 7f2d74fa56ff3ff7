from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, List, Optional

from .config.settings import AppConfig, load_config
from .core.exceptions import ConfigurationError, GistdexError, RetrievalError
from .core.types import PlanExecutionResult, ScoredResult
from .planner.query_planner import PlannerOptions, StrategyOptions
from .retrieval.score_analysis import analyze_scores, format_score_analysis
from .session import SearchSession
from .utils.logging import get_logger, set_logging_debug_mode

logger = get_logger("gistdex_cli")

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_BACKEND_ERROR = 2
PREVIEW_CHARS = 160


def parse_filter(pairs: Optional[List[str]]) -> Optional[Dict[str, Any]]:
    """``["lang=en", "boundary.level=2"]`` -> ``{"lang": "en", "boundary.level": 2}``"""
    if not pairs:
        return None
    out: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Filter must look like key=value, got {pair!r}")
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        if isinstance(value, (dict, list)):
            value = raw
        out[key.strip()] = value
    return out


async def load_corpus(session: SearchSession, path: str) -> int:
    """Embed and store every line of a JSONL corpus: ``{"content", "id"?, "metadata"?}``."""
    if not os.path.exists(path):
        raise ConfigurationError(f"Corpus file not found: {path}")

    count = 0
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"{path}:{line_no}: invalid JSON ({e})") from e
            content = row.get("content") or ""
            if not content.strip():
                continue
            vector = await session.embedder.embed(content)
            await session.store.store_document(
                content,
                vector,
                metadata=row.get("metadata") or {},
                doc_id=row.get("id"),
            )
            count += 1
    logger.info(f"Loaded {count} documents from {path}")
    return count


def format_results(results: List[ScoredResult]) -> str:
    lines = []
    for i, r in enumerate(results, 1):
        preview = " ".join(r.content.split())
        if len(preview) > PREVIEW_CHARS:
            preview = preview[:PREVIEW_CHARS] + "..."
        lines.append(f"[{i}] {r.score:.4f}  {r.id}")
        lines.append(f"    {preview}")
    return "\n".join(lines)


def format_plan_result(result: PlanExecutionResult) -> str:
    plan = result.plan
    lines = [f"Plan {plan.id}: {plan.status.value}", f"Goal: {plan.goal}", ""]
    for stage_result in result.stages:
        ev = stage_result.evaluation
        flags = []
        if stage_result.timed_out:
            flags.append("timed out")
        if stage_result.error:
            flags.append(f"error: {stage_result.error}")
        suffix = f" ({', '.join(flags)})" if flags else ""
        lines.append(
            f"Stage {stage_result.stage.stage_number}: \"{stage_result.stage.query}\" "
            f"score={ev.score:.2f} matches={ev.keyword_matches}{suffix}"
        )
        lines.append(f"    {ev.feedback}")
    lines.append("")
    lines.append(f"Best score: {result.best_score:.2f}")
    return "\n".join(lines)


def _results_to_json(results: List[ScoredResult]) -> List[Dict[str, Any]]:
    return [{"id": r.id, "score": r.score, "content": r.content, "metadata": r.metadata} for r in results]


async def run_search(args: argparse.Namespace, session: SearchSession) -> int:
    results = await session.search(
        args.query,
        hybrid=args.hybrid,
        k=args.k,
        filter=parse_filter(args.filter),
        rerank=True if args.rerank else None,
    )
    if args.json:
        print(json.dumps(_results_to_json(results), ensure_ascii=False, indent=2))
        return EXIT_OK
    if not results:
        print(f"No results found for: {args.query}")
        return EXIT_OK
    print(format_results(results))
    if args.analyze:
        print()
        print(format_score_analysis(analyze_scores(results)))
    return EXIT_OK


async def run_plan(args: argparse.Namespace, session: SearchSession) -> int:
    options = PlannerOptions(
        strategy=StrategyOptions(initial_mode=args.mode, refinement_method=args.refine)
    )
    result = await session.run_plan(
        args.goal,
        options=options,
        hybrid=not args.semantic,
        k=args.k,
        filter=parse_filter(args.filter),
    )
    if not result.best_results:
        backend_errors = [s.exception for s in result.stages if isinstance(s.exception, RetrievalError)]
        if backend_errors:
            # every stage came back empty and the backend failed: not a "no results" outcome
            raise backend_errors[-1]
    if args.json:
        payload = {
            "plan": result.plan.model_dump(mode="json"),
            "best_score": result.best_score,
            "best_results": _results_to_json(result.best_results),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return EXIT_OK
    print(format_plan_result(result))
    if result.best_results:
        print()
        print(format_results(result.best_results))
    else:
        print(f"No results found for: {args.goal}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gistdex", description="Semantic search and goal-driven query planning")
    parser.add_argument("--corpus", type=str, default=None, help="JSONL corpus to index before running")
    parser.add_argument("--env-file", type=str, default=None, help="dotenv file with GISTDEX_* settings")
    parser.add_argument("--trace-id", type=str, default=None, help="Optional trace id for logging")
    parser.add_argument("--debug", action="store_true", help="Enable colored debug logging")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")

    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Single semantic or hybrid search")
    search.add_argument("query", type=str)
    search.add_argument("-k", type=int, default=None, help="Number of results")
    search.add_argument("--hybrid", action="store_true", help="Blend keyword overlap into the score")
    search.add_argument("--rerank", action="store_true", help="Apply lexical reranking")
    search.add_argument("--filter", action="append", metavar="KEY=VALUE", help="Exact-match metadata filter")
    search.add_argument("--analyze", action="store_true", help="Print score statistics")

    plan = sub.add_parser("plan", help="Goal-driven multi-stage search")
    plan.add_argument("goal", type=str)
    plan.add_argument("-k", type=int, default=None, help="Results per stage")
    plan.add_argument("--mode", choices=["broad", "specific"], default="broad")
    plan.add_argument("--refine", choices=["keywords", "semantic", "hybrid"], default="hybrid")
    plan.add_argument("--semantic", action="store_true", help="Run stages as semantic instead of hybrid search")
    plan.add_argument("--filter", action="append", metavar="KEY=VALUE", help="Exact-match metadata filter")

    return parser


async def _run(args: argparse.Namespace, config: AppConfig) -> int:
    async with await SearchSession.open(config, trace_id=args.trace_id) as session:
        if args.corpus:
            await load_corpus(session, args.corpus)
        if args.command == "search":
            return await run_search(args, session)
        return await run_plan(args, session)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.debug:
        set_logging_debug_mode(True)

    try:
        config = load_config(args.env_file)
        return asyncio.run(_run(args, config))
    except RetrievalError as e:
        print(f"Retrieval backend unavailable: {e}", file=sys.stderr)
        return EXIT_BACKEND_ERROR
    except (GistdexError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
