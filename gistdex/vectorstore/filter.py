"""Exact-match metadata filters with dot-notation nested keys."""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional

from ..core.types import MetadataFilter

_MISSING = object()
_SCALARS = (str, int, float, bool, type(None))
_KEY_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


def validate_filter(filter: Optional[MetadataFilter]) -> None:
    """Reject filter values that are not scalars (no ranges, lists or objects)."""
    if not filter:
        return
    for key, value in filter.items():
        if not isinstance(key, str) or not key:
            raise ValueError(f"Filter keys must be non-empty strings, got {key!r}")
        if not isinstance(value, _SCALARS):
            raise ValueError(f"Filter value for {key!r} must be a scalar, got {type(value).__name__}")


def get_nested_value(obj: Mapping[str, Any], path: str) -> Any:
    """Look up ``a.b.c`` in nested mappings. Returns ``_MISSING`` when any segment is absent."""
    current: Any = obj
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _values_equal(actual: Any, expected: Any) -> bool:
    # True == 1 in Python; booleans only match booleans
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    return actual == expected


def matches_filter(metadata: Optional[Mapping[str, Any]], filter: Optional[MetadataFilter]) -> bool:
    """True when every filter entry equals the (possibly nested) metadata value."""
    if not filter:
        return True
    if not metadata:
        return False

    for key, expected in filter.items():
        if key in metadata:
            actual = metadata[key]
        elif "." in key:
            actual = get_nested_value(metadata, key)
        else:
            return False
        if actual is _MISSING or not _values_equal(actual, expected):
            return False
    return True


def to_milvus_expression(filter: Optional[MetadataFilter], field: str = "metadata") -> str:
    """Translate a filter into a Milvus JSON-field boolean expression.

    ``{"boundary.type": "heading", "lang": "en"}`` becomes
    ``metadata["boundary"]["type"] == "heading" and metadata["lang"] == "en"``.
    """
    if not filter:
        return ""
    validate_filter(filter)

    clauses = []
    for key, value in filter.items():
        segments = key.split(".")
        if not all(_KEY_SEGMENT_RE.match(s) for s in segments):
            raise ValueError(f"Unsupported characters in filter key {key!r}")
        if value is None:
            raise ValueError(f"Milvus filters cannot match null values ({key!r})")
        path = "".join(f'["{s}"]' for s in segments)
        clauses.append(f"{field}{path} == {json.dumps(value)}")
    return " and ".join(clauses)
