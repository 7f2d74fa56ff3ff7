"""
Scoring and ranking functions

Contains:
- cosine_similarity: vector similarity (tolerant of mismatched lengths)
- sort_by_score: stable descending sort
- combine_hybrid_score / keyword_overlap_score: semantic + lexical blending
- rerank: lexical boost on top of an existing ranking
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Sequence, TypeVar

import numpy as np

from ..config.constants import PHRASE_MATCH_BONUS
from ..core.exceptions import DimensionMismatchError
from ..core.types import ScoredResult
from ..utils.logging import get_logger
from ..utils.text import normalize_whitespace, tokenize_terms

logger = get_logger("rankers")

T = TypeVar("T")


# ================= Vector similarity =================

def dot_product(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product over the first min(len(a), len(b)) components."""
    n = min(len(a), len(b))
    if n == 0:
        return 0.0
    return float(np.dot(np.asarray(a[:n], dtype=np.float64), np.asarray(b[:n], dtype=np.float64)))


def magnitude(v: Sequence[float]) -> float:
    """Euclidean norm over the full vector."""
    if len(v) == 0:
        return 0.0
    return float(np.linalg.norm(np.asarray(v, dtype=np.float64)))


def cosine_similarity(a: Sequence[float], b: Sequence[float], strict: bool = False) -> float:
    """
    Cosine similarity between two vectors

    The dot product only covers the overlapping prefix of the two vectors but
    each magnitude is taken over its whole vector, so vectors of different
    lengths compare lower than their shared prefix would suggest:
    cosine_similarity([1, 2], [1, 2, 3]) == 5 / (sqrt(5) * sqrt(14)) ~= 0.598.
    Indexes built with this behavior rank consistently only if it is kept.

    Args:
        a: First vector
        b: Second vector
        strict: Raise DimensionMismatchError instead of comparing vectors of
            different lengths

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero magnitude
    """
    if len(a) != len(b):
        if strict:
            raise DimensionMismatchError(f"vector lengths differ: {len(a)} != {len(b)}")
        logger.debug(f"Comparing vectors of different length ({len(a)} vs {len(b)})")

    mag_a = magnitude(a)
    mag_b = magnitude(b)
    if mag_a == 0.0 or mag_b == 0.0:
        return 0.0
    return dot_product(a, b) / (mag_a * mag_b)


# ================= Sorting =================

def _default_score(item: Any) -> float:
    if isinstance(item, Mapping):
        return float(item["score"])
    return float(item.score)


def sort_by_score(items: Sequence[T], score_accessor: Optional[Callable[[T], float]] = None) -> List[T]:
    """Return a new list sorted by descending score; ties keep their input order."""
    accessor = score_accessor or _default_score
    # sorted() is stable, so reverse=True keeps equal-score items in input order
    return sorted(items, key=accessor, reverse=True)


# ================= Hybrid scoring =================

def combine_hybrid_score(semantic_score: float, keyword_score: float, keyword_weight: float) -> float:
    """Blend semantic and lexical scores, clamped to [0, 1]."""
    combined = semantic_score * (1.0 - keyword_weight) + keyword_score * keyword_weight
    return min(1.0, max(0.0, combined))


def keyword_overlap_score(query: str, content: str, query_terms: Optional[List[str]] = None) -> float:
    """Fraction of distinct query terms that occur (case-insensitively) in content."""
    terms = query_terms if query_terms is not None else tokenize_terms(query)
    if not terms:
        return 0.0
    haystack = (content or "").lower()
    hits = sum(1 for t in terms if t in haystack)
    return hits / len(terms)


def _rerank_signal(query_phrase: str, query_terms: List[str], content: str) -> float:
    signal = keyword_overlap_score(query_phrase, content, query_terms)
    if query_phrase and query_phrase in normalize_whitespace(content).lower():
        signal += PHRASE_MATCH_BONUS
    return signal


def rerank(results: Sequence[ScoredResult], query: str, boost_factor: float) -> List[ScoredResult]:
    """
    Lexical reranking

    Each score becomes ``score + boost_factor * signal`` where the signal is
    the query-term overlap plus a bonus for a verbatim phrase match. With
    ``boost_factor == 0`` scores are unchanged and the stable sort keeps the
    current order, so reranking an already ranked list is a no-op.

    Args:
        results: Candidates, usually already sorted by score
        query: The user query
        boost_factor: Weight of the lexical signal

    Returns:
        New list of results sorted by the adjusted score
    """
    if not results:
        return []
    if boost_factor == 0:
        return sort_by_score(results)

    terms = tokenize_terms(query)
    phrase = normalize_whitespace(query).lower()
    boosted = [
        r.with_score(r.score + boost_factor * _rerank_signal(phrase, terms, r.content))
        for r in results
    ]
    return sort_by_score(boosted)
