"""In-process vector store using the package's own cosine similarity."""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..config.settings import AppConfig
from ..core.exceptions import DimensionMismatchError, StoreUnavailableError
from ..core.types import MetadataFilter, ScoredResult
from ..retrieval.rankers import cosine_similarity, sort_by_score
from ..utils.logging import get_logger
from .filter import matches_filter, validate_filter


@dataclass
class _StoredDocument:
    id: str
    content: str
    vector: List[float]
    metadata: Dict[str, Any]


class InMemoryVectorStore:
    """
    In-memory vector store

    Exhaustive cosine search over all stored vectors. Documents are kept in
    insertion order so equal scores rank deterministically.
    """

    def __init__(self, dimension: int = 768, strict_dimensions: bool = False):
        self.dimension = dimension
        self.strict_dimensions = strict_dimensions
        self._docs: Dict[str, _StoredDocument] = {}
        self._initialized = False
        self.logger = get_logger("InMemoryVectorStore")

    @classmethod
    def from_config(cls, config: AppConfig) -> "InMemoryVectorStore":
        return cls(dimension=config.embedding_dim)

    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        self._initialized = True

    async def close(self) -> None:
        self._initialized = False

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise StoreUnavailableError("InMemoryVectorStore is not initialized")

    @staticmethod
    def _to_result(doc: _StoredDocument, score: float) -> ScoredResult:
        return ScoredResult(id=doc.id, content=doc.content, score=score, metadata=copy.deepcopy(doc.metadata))

    def _filtered(self, filter: Optional[MetadataFilter]) -> List[_StoredDocument]:
        validate_filter(filter)
        return [d for d in self._docs.values() if matches_filter(d.metadata, filter)]

    async def search_similar(
        self,
        vector: Sequence[float],
        k: int,
        filter: Optional[MetadataFilter] = None,
    ) -> List[ScoredResult]:
        self._require_initialized()
        if k <= 0:
            raise ValueError("k must be positive")

        scored = [
            self._to_result(d, cosine_similarity(vector, d.vector, strict=self.strict_dimensions))
            for d in self._filtered(filter)
        ]
        return sort_by_score(scored)[:k]

    async def count_documents(self, filter: Optional[MetadataFilter] = None) -> int:
        self._require_initialized()
        return len(self._filtered(filter))

    async def list_documents(
        self,
        limit: int = 100,
        offset: int = 0,
        filter: Optional[MetadataFilter] = None,
    ) -> List[ScoredResult]:
        self._require_initialized()
        docs = self._filtered(filter)[offset:offset + limit]
        return [self._to_result(d, 0.0) for d in docs]

    async def store_document(
        self,
        content: str,
        vector: Sequence[float],
        metadata: Optional[Dict[str, Any]] = None,
        doc_id: Optional[str] = None,
    ) -> str:
        self._require_initialized()
        if len(vector) != self.dimension:
            raise DimensionMismatchError(
                f"Expected a {self.dimension}-dimensional vector, got {len(vector)}"
            )
        doc_id = doc_id or uuid.uuid4().hex
        self._docs[doc_id] = _StoredDocument(
            id=doc_id,
            content=content,
            vector=[float(x) for x in vector],
            metadata=copy.deepcopy(metadata or {}),
        )
        self.logger.debug(f"Stored document {doc_id} ({len(self._docs)} total)")
        return doc_id

    async def remove_document(self, doc_id: str) -> bool:
        self._require_initialized()
        return self._docs.pop(doc_id, None) is not None
