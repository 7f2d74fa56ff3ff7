"""Score distribution analysis for search results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Sequence

from ..config.constants import SCORE_BANDS
from ..core.types import ScoredResult

ScoreQuality = Literal["excellent", "good", "fair", "poor"]


@dataclass
class DetailedScoreMetrics:
    total_results: int = 0
    avg_score: float = 0.0
    max_score: float = 0.0
    min_score: float = 0.0
    score_variance: float = 0.0
    score_std: float = 0.0
    median_score: float = 0.0
    percentiles: Dict[str, float] = field(
        default_factory=lambda: {"p25": 0.0, "p50": 0.0, "p75": 0.0, "p90": 0.0}
    )


@dataclass
class ScoreDistribution:
    high: int = 0
    medium: int = 0
    low: int = 0
    histogram: List[Dict[str, object]] = field(default_factory=list)


@dataclass
class ScoreAnalysis:
    metrics: DetailedScoreMetrics
    distribution: ScoreDistribution


def _percentile(sorted_scores: List[float], p: float) -> float:
    # nearest-rank: ceil(p/100 * n) - 1, clamped into range
    index = math.ceil((p / 100.0) * len(sorted_scores)) - 1
    index = max(0, min(index, len(sorted_scores) - 1))
    return sorted_scores[index]


def calculate_detailed_metrics(results: Sequence[ScoredResult]) -> DetailedScoreMetrics:
    if not results:
        return DetailedScoreMetrics()

    scores = sorted(r.score for r in results)
    n = len(scores)
    avg = sum(scores) / n
    variance = sum((s - avg) ** 2 for s in scores) / n

    return DetailedScoreMetrics(
        total_results=n,
        avg_score=avg,
        max_score=scores[-1],
        min_score=scores[0],
        score_variance=variance,
        score_std=math.sqrt(variance),
        median_score=_percentile(scores, 50),
        percentiles={
            "p25": _percentile(scores, 25),
            "p50": _percentile(scores, 50),
            "p75": _percentile(scores, 75),
            "p90": _percentile(scores, 90),
        },
    )


def calculate_score_distribution(results: Sequence[ScoredResult]) -> ScoreDistribution:
    dist = ScoreDistribution()
    for r in results:
        if r.score >= SCORE_BANDS["high"]:
            dist.high += 1
        elif r.score >= SCORE_BANDS["medium"]:
            dist.medium += 1
        else:
            dist.low += 1

    # ten [lo, hi) buckets of width 0.1; scores outside [0, 1) are not bucketed
    for i in range(10):
        lo, hi = i / 10, (i + 1) / 10
        count = sum(1 for r in results if lo <= r.score < hi)
        dist.histogram.append({"range": f"{lo:.1f}-{hi:.1f}", "count": count})
    return dist


def analyze_scores(results: Sequence[ScoredResult]) -> ScoreAnalysis:
    return ScoreAnalysis(
        metrics=calculate_detailed_metrics(results),
        distribution=calculate_score_distribution(results),
    )


def assess_score_quality(analysis: ScoreAnalysis) -> ScoreQuality:
    m, d = analysis.metrics, analysis.distribution
    if m.total_results == 0:
        return "poor"
    if m.avg_score >= 0.8 and d.high >= m.total_results * 0.5:
        return "excellent"
    if m.avg_score >= 0.6 and d.high >= m.total_results * 0.3:
        return "good"
    if m.avg_score >= 0.4:
        return "fair"
    return "poor"


def format_score_analysis(analysis: ScoreAnalysis) -> str:
    """Render an analysis as plain text lines."""
    m, d = analysis.metrics, analysis.distribution
    if m.total_results == 0:
        return "No results to analyze"

    lines = [
        f"Total Results: {m.total_results}",
        f"Average Score: {m.avg_score:.3f}",
        f"Score Range: {m.min_score:.3f} - {m.max_score:.3f}",
        f"Standard Deviation: {m.score_std:.3f}",
        "",
        "Score Distribution:",
        f"  High (>=0.8): {d.high} results",
        f"  Medium (0.5-0.8): {d.medium} results",
        f"  Low (<0.5): {d.low} results",
        "",
        "Percentiles:",
        f"  25th: {m.percentiles['p25']:.3f}",
        f"  50th (Median): {m.percentiles['p50']:.3f}",
        f"  75th: {m.percentiles['p75']:.3f}",
        f"  90th: {m.percentiles['p90']:.3f}",
    ]
    return "\n".join(lines)
