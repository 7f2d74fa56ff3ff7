"""
Vector stores

- InMemoryVectorStore: exhaustive in-process search
- MilvusVectorStore: Milvus Lite / Milvus server
"""

from .filter import get_nested_value, matches_filter, to_milvus_expression, validate_filter
from .memory import InMemoryVectorStore
from .milvus import MilvusVectorStore
from .registry import VECTOR_STORE_REGISTRY, create_vector_store

__all__ = [
    # Stores
    "InMemoryVectorStore",
    "MilvusVectorStore",
    "VECTOR_STORE_REGISTRY",
    "create_vector_store",
    # Filters
    "get_nested_value",
    "matches_filter",
    "to_milvus_expression",
    "validate_filter",
]
