"""
Single-shot retrieval engine

Contains:
- RetrievalEngine: semantic search and hybrid (semantic + keyword overlap)
  search over an injected Embedder and VectorStore
"""

from __future__ import annotations

from typing import List, Optional

from ..config.constants import HYBRID_CANDIDATE_MULTIPLIER
from ..core.exceptions import EmbeddingError, StoreUnavailableError
from ..core.interfaces import Embedder, VectorStore
from ..core.types import ScoredResult, SearchOptions
from ..utils.logging import get_logger
from ..utils.text import tokenize_terms
from .rankers import (
    combine_hybrid_score,
    keyword_overlap_score,
    rerank,
    sort_by_score,
)


class RetrievalEngine:
    """
    Retrieval engine

    Embeds the query, asks the store for nearest neighbours and ranks them.
    Embedding and store failures are raised as typed errors, never turned
    into empty result lists.
    """

    def __init__(
        self,
        embedder: Embedder,
        trace_id: Optional[str] = None,
        candidate_multiplier: int = HYBRID_CANDIDATE_MULTIPLIER,
    ):
        if candidate_multiplier < 1:
            raise ValueError("candidate_multiplier must be >= 1")
        self.embedder = embedder
        self.candidate_multiplier = candidate_multiplier
        self.logger = get_logger("RetrievalEngine", trace_id)

    async def _embed(self, query: str) -> List[float]:
        try:
            return list(await self.embedder.embed(query))
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Failed to embed query: {e}") from e

    async def _retrieve(self, query: str, k: int, options: SearchOptions, store: VectorStore) -> List[ScoredResult]:
        if not store.is_initialized():
            raise StoreUnavailableError("Vector store is not initialized")

        vector = await self._embed(query)
        hits = await store.search_similar(vector, k=k, filter=options.filter)
        self.logger.debug(f"Store returned {len(hits)} candidates for k={k}")
        return sort_by_score(hits)

    async def semantic_search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
        store: Optional[VectorStore] = None,
    ) -> List[ScoredResult]:
        """
        Semantic similarity search

        Args:
            query: Query text
            options: k / filter / rerank settings
            store: Vector store to search

        Returns:
            Results sorted by descending score, at most ``options.k``
        """
        options = options or SearchOptions()
        if store is None:
            raise StoreUnavailableError("No vector store supplied")
        if not query or not query.strip():
            return []

        results = await self._retrieve(query, options.k, options, store)
        if options.rerank:
            results = rerank(results, query, options.boost_factor)

        self.logger.info(f"Semantic search returned {len(results[:options.k])} results")
        return results[:options.k]

    async def hybrid_search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
        store: Optional[VectorStore] = None,
    ) -> List[ScoredResult]:
        """
        Hybrid search: semantic similarity blended with keyword overlap

        Over-fetches ``k * candidate_multiplier`` semantic candidates so that
        strong lexical matches just outside the semantic top-k can surface.
        With ``keyword_weight == 0`` and rerank disabled the ordering equals
        semantic_search's.

        Args:
            query: Query text
            options: k / filter / keyword_weight / rerank settings
            store: Vector store to search

        Returns:
            Results sorted by descending hybrid score, at most ``options.k``
        """
        options = options or SearchOptions()
        if store is None:
            raise StoreUnavailableError("No vector store supplied")
        if not query or not query.strip():
            return []

        candidates = await self._retrieve(query, options.k * self.candidate_multiplier, options, store)

        terms = tokenize_terms(query)
        scored = []
        for r in candidates:
            overlap = keyword_overlap_score(query, r.content, terms)
            scored.append(r.with_score(combine_hybrid_score(r.score, overlap, options.keyword_weight)))

        results = sort_by_score(scored)
        if options.rerank:
            results = rerank(results, query, options.boost_factor)

        self.logger.info(
            f"Hybrid search (keyword_weight={options.keyword_weight}) returned "
            f"{len(results[:options.k])} of {len(candidates)} candidates"
        )
        return results[:options.k]

    async def search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
        store: Optional[VectorStore] = None,
        hybrid: bool = False,
    ) -> List[ScoredResult]:
        if hybrid:
            return await self.hybrid_search(query, options, store)
        return await self.semantic_search(query, options, store)
