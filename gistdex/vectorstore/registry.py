"""Registry of vector store backends."""

from __future__ import annotations

from ..config.settings import AppConfig
from ..core.interfaces import VectorStore
from ..core.registry import AdapterRegistry, AdapterSpec
from .memory import InMemoryVectorStore
from .milvus import MilvusVectorStore


VECTOR_STORE_REGISTRY: AdapterRegistry[VectorStore] = AdapterRegistry(
    "vector store",
    [
        AdapterSpec(
            name="memory",
            factory=InMemoryVectorStore.from_config,
            capabilities=frozenset({"ephemeral", "filter"}),
            description="Exhaustive in-process cosine search",
        ),
        AdapterSpec(
            name="milvus",
            factory=MilvusVectorStore.from_config,
            capabilities=frozenset({"persistent", "filter"}),
            description="Milvus Lite file or Milvus server",
        ),
    ],
)


def create_vector_store(config: AppConfig) -> VectorStore:
    """Build the (uninitialized) store named by ``config.vector_store``."""
    return VECTOR_STORE_REGISTRY.create(config.vector_store, config)
