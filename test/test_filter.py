"""
Tests for exact-match metadata filters and their Milvus translation.
"""

import pytest

from gistdex.vectorstore.filter import (
    get_nested_value,
    matches_filter,
    to_milvus_expression,
    validate_filter,
)

METADATA = {
    "lang": "en",
    "stars": 3,
    "public": True,
    "boundary": {"type": "heading", "level": 2},
}


def test_empty_filter_matches_everything():
    assert matches_filter(METADATA, None)
    assert matches_filter(METADATA, {})
    assert matches_filter(None, {})


def test_missing_metadata_never_matches_a_filter():
    assert not matches_filter(None, {"lang": "en"})
    assert not matches_filter({}, {"lang": "en"})


def test_top_level_and_nested_keys_are_anded():
    assert matches_filter(METADATA, {"lang": "en", "boundary.type": "heading"})
    assert not matches_filter(METADATA, {"lang": "en", "boundary.type": "code"})
    assert matches_filter(METADATA, {"boundary.level": 2})


def test_missing_nested_path_does_not_match():
    assert not matches_filter(METADATA, {"boundary.depth": 1})
    assert not matches_filter(METADATA, {"lang.code": "en"})


def test_booleans_do_not_match_integers():
    assert matches_filter(METADATA, {"public": True})
    assert not matches_filter(METADATA, {"public": 1})
    assert not matches_filter({"flag": 1}, {"flag": True})


def test_get_nested_value():
    assert get_nested_value(METADATA, "boundary.type") == "heading"
    assert get_nested_value(METADATA, "lang") == "en"


def test_validate_filter_rejects_non_scalars():
    validate_filter({"a": "x", "b": 1, "c": None})
    with pytest.raises(ValueError):
        validate_filter({"a": ["x", "y"]})
    with pytest.raises(ValueError):
        validate_filter({"a": {"$gt": 1}})


def test_milvus_expression():
    expr = to_milvus_expression({"boundary.type": "heading", "stars": 3, "public": True})
    assert expr == (
        'metadata["boundary"]["type"] == "heading" and '
        'metadata["stars"] == 3 and '
        'metadata["public"] == true'
    )
    assert to_milvus_expression(None) == ""


def test_milvus_expression_rejects_unsafe_keys_and_nulls():
    with pytest.raises(ValueError):
        to_milvus_expression({'lang"] or 1 == 1 or ["x': "en"})
    with pytest.raises(ValueError):
        to_milvus_expression({"lang": None})
