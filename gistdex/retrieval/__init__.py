"""Retrieval module: scoring functions, the search engine and score analysis."""

from .engine import RetrievalEngine

from .rankers import (
    cosine_similarity,
    dot_product,
    magnitude,
    sort_by_score,
    combine_hybrid_score,
    keyword_overlap_score,
    rerank,
)

from .score_analysis import (
    analyze_scores,
    assess_score_quality,
    calculate_detailed_metrics,
    calculate_score_distribution,
    format_score_analysis,
)

__all__ = [
    # Engine
    "RetrievalEngine",
    # Scoring
    "cosine_similarity",
    "dot_product",
    "magnitude",
    "sort_by_score",
    "combine_hybrid_score",
    "keyword_overlap_score",
    "rerank",
    # Score analysis
    "analyze_scores",
    "assess_score_quality",
    "calculate_detailed_metrics",
    "calculate_score_distribution",
    "format_score_analysis",
]
