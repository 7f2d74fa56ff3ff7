"""
Tests for score statistics and distribution helpers.
"""

import pytest

from conftest import result
from gistdex.retrieval.score_analysis import (
    analyze_scores,
    assess_score_quality,
    calculate_detailed_metrics,
    calculate_score_distribution,
    format_score_analysis,
)


def _results(*scores):
    return [result(str(i), "content", s) for i, s in enumerate(scores)]


def test_detailed_metrics():
    metrics = calculate_detailed_metrics(_results(0.2, 0.4, 0.6, 0.8))
    assert metrics.total_results == 4
    assert metrics.avg_score == pytest.approx(0.5)
    assert metrics.min_score == 0.2
    assert metrics.max_score == 0.8
    assert metrics.score_variance == pytest.approx(0.05)
    assert metrics.score_std == pytest.approx(0.05 ** 0.5)
    # nearest rank
    assert metrics.percentiles == {"p25": 0.2, "p50": 0.4, "p75": 0.6, "p90": 0.8}
    assert metrics.median_score == 0.4


def test_detailed_metrics_empty():
    metrics = calculate_detailed_metrics([])
    assert metrics.total_results == 0
    assert metrics.avg_score == 0.0


def test_score_distribution_bands_and_histogram():
    dist = calculate_score_distribution(_results(0.95, 0.8, 0.55, 0.1, 0.05))
    assert (dist.high, dist.medium, dist.low) == (2, 1, 2)
    assert len(dist.histogram) == 10
    assert dist.histogram[0] == {"range": "0.0-0.1", "count": 1}
    assert dist.histogram[1]["count"] == 1
    assert dist.histogram[9] == {"range": "0.9-1.0", "count": 1}


def test_assess_score_quality():
    assert assess_score_quality(analyze_scores(_results(0.9, 0.85, 0.95))) == "excellent"
    assert assess_score_quality(analyze_scores(_results(0.85, 0.6, 0.5))) == "good"
    assert assess_score_quality(analyze_scores(_results(0.45, 0.4))) == "fair"
    assert assess_score_quality(analyze_scores(_results(0.1))) == "poor"
    assert assess_score_quality(analyze_scores([])) == "poor"


def test_format_score_analysis():
    text = format_score_analysis(analyze_scores(_results(0.9, 0.3)))
    assert "Total Results: 2" in text
    assert "High (>=0.8): 1 results" in text
    assert format_score_analysis(analyze_scores([])) == "No results to analyze"
