"""Constant values for the retrieval and planning core."""

from __future__ import annotations

from typing import Dict


# Search defaults
DEFAULT_TOP_K = 5
DEFAULT_KEYWORD_WEIGHT = 0.3
DEFAULT_RERANK_BOOST = 0.1
HYBRID_CANDIDATE_MULTIPLIER = 2  # fetch k * 2 candidates before hybrid re-scoring

# Bonus added to the rerank signal when the full query phrase appears verbatim
PHRASE_MATCH_BONUS = 0.5


# Planner defaults
DEFAULT_MIN_SCORE = 0.6
DEFAULT_MIN_CONFIDENCE = 0.6
DEFAULT_MIN_MATCHES = 1
DEFAULT_STAGE_TIMEOUT_MS = 30000
DEFAULT_MAX_STAGES = 5
DEFAULT_MAX_CONSECUTIVE_ERRORS = 2
CONFIDENCE_TOP_N = 5  # top results averaged into a stage's confidence


# Stage score = w_keywords * keyword_ratio + w_confidence * confidence
EVALUATION_WEIGHTS: Dict[str, float] = {
    "w_keywords": 0.6,
    "w_confidence": 0.4,
}


# Refinement qualifiers appended to queries
REFINEMENT_QUALIFIERS: Dict[str, str] = {
    "specific": "configuration setup",
    "fallback": "implementation",
    "broad_low": "documentation guide tutorial",
    "broad_high": "examples usage",
    "hybrid_low": "documentation guide",
    # appended when two methods would otherwise produce the same query
    "keywords_tag": "reference",
    "semantic_tag": "overview",
    "hybrid_tag": "details",
}


# Score distribution buckets used by score analysis
SCORE_BANDS: Dict[str, float] = {
    "high": 0.8,
    "medium": 0.5,
}
