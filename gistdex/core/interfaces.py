"""Abstract interfaces (Protocols) for the collaborators of the core."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .types import MetadataFilter, ScoredResult


@runtime_checkable
class Embedder(Protocol):
    """Converts text into a fixed-dimension vector."""

    dimension: int

    async def embed(self, text: str) -> List[float]:
        """Embed ``text``; raises EmbeddingError on API/network failure."""
        ...


@runtime_checkable
class VectorStore(Protocol):
    """Nearest-neighbor search with exact-match metadata filtering.

    The core only reads from a store; ``store_document`` and
    ``remove_document`` belong to the ingestion path.
    """

    def is_initialized(self) -> bool:
        ...

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def search_similar(
        self,
        vector: Sequence[float],
        k: int,
        filter: Optional[MetadataFilter] = None,
    ) -> List[ScoredResult]:
        ...

    async def count_documents(self, filter: Optional[MetadataFilter] = None) -> int:
        ...

    async def list_documents(
        self,
        limit: int = 100,
        offset: int = 0,
        filter: Optional[MetadataFilter] = None,
    ) -> List[ScoredResult]:
        ...

    async def store_document(
        self,
        content: str,
        vector: Sequence[float],
        metadata: Optional[Dict[str, Any]] = None,
        doc_id: Optional[str] = None,
    ) -> str:
        ...

    async def remove_document(self, doc_id: str) -> bool:
        ...


# Caller-supplied async function that runs one stage query
QueryExecutor = Callable[[str], Awaitable[List[ScoredResult]]]
