"""
Search session - caller-owned bundle of config, embedder and vector store

Usage:
    async with await SearchSession.open(load_config()) as session:
        results = await session.hybrid_search("vector store setup")
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from .config.settings import AppConfig, load_config
from .core.interfaces import Embedder, QueryExecutor, VectorStore
from .core.types import MetadataFilter, Plan, PlanExecutionResult, ScoredResult, SearchOptions
from .embedding.registry import create_embedder
from .planner.query_planner import ExecutionOptions, PlannerOptions, QueryPlanner
from .retrieval.engine import RetrievalEngine
from .utils.logging import get_logger
from .vectorstore.registry import create_vector_store


class SearchSession:
    """
    Explicitly created search context

    Holds no process-wide state: two sessions built from different configs
    never share an embedder or a store.
    """

    def __init__(
        self,
        config: AppConfig,
        embedder: Embedder,
        store: VectorStore,
        trace_id: Optional[str] = None,
    ):
        self.config = config
        self.embedder = embedder
        self.store = store
        self.trace_id = trace_id or uuid.uuid4().hex[:8]
        self.engine = RetrievalEngine(embedder, trace_id=self.trace_id)
        self.logger = get_logger("SearchSession", self.trace_id)
        self._closed = False

    @classmethod
    async def open(
        cls,
        config: Optional[AppConfig] = None,
        embedder: Optional[Embedder] = None,
        store: Optional[VectorStore] = None,
        trace_id: Optional[str] = None,
    ) -> "SearchSession":
        """
        Resolve adapters from the registries and initialize the store.

        Args:
            config: Session configuration; ``load_config()`` when omitted
            embedder: Pre-built embedder overriding ``config.embedding_backend``
            store: Pre-built store overriding ``config.vector_store``
            trace_id: Trace id attached to every log line of the session
        """
        config = config or load_config()
        embedder = embedder or create_embedder(config)
        store = store or create_vector_store(config)
        if not store.is_initialized():
            await store.initialize()
        session = cls(config, embedder, store, trace_id=trace_id)
        session.logger.info(
            f"Session opened (embedder={type(embedder).__name__}, store={type(store).__name__})"
        )
        return session

    async def __aenter__(self) -> "SearchSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.store.close()
        self.logger.debug("Session closed")

    # ============ Search ============

    def options(
        self,
        k: Optional[int] = None,
        filter: Optional[MetadataFilter] = None,
        keyword_weight: Optional[float] = None,
        rerank: Optional[bool] = None,
    ) -> SearchOptions:
        """SearchOptions with unset values taken from the session config."""
        return SearchOptions(
            k=self.config.top_k if k is None else k,
            filter=filter,
            keyword_weight=self.config.keyword_weight if keyword_weight is None else keyword_weight,
            rerank=self.config.rerank if rerank is None else rerank,
            boost_factor=self.config.rerank_boost,
        )

    async def semantic_search(
        self,
        query: str,
        k: Optional[int] = None,
        filter: Optional[MetadataFilter] = None,
        rerank: Optional[bool] = None,
    ) -> List[ScoredResult]:
        return await self.engine.semantic_search(query, self.options(k, filter, rerank=rerank), self.store)

    async def hybrid_search(
        self,
        query: str,
        k: Optional[int] = None,
        filter: Optional[MetadataFilter] = None,
        keyword_weight: Optional[float] = None,
        rerank: Optional[bool] = None,
    ) -> List[ScoredResult]:
        return await self.engine.hybrid_search(
            query, self.options(k, filter, keyword_weight, rerank), self.store
        )

    async def search(self, query: str, hybrid: bool = False, **kwargs) -> List[ScoredResult]:
        if hybrid:
            return await self.hybrid_search(query, **kwargs)
        return await self.semantic_search(query, **kwargs)

    def query_executor(
        self,
        hybrid: bool = False,
        k: Optional[int] = None,
        filter: Optional[MetadataFilter] = None,
        rerank: Optional[bool] = None,
    ) -> QueryExecutor:
        """Bind search settings into the single-argument executor the planner expects."""
        options = self.options(k, filter, rerank=rerank)

        async def execute(query: str) -> List[ScoredResult]:
            return await self.engine.search(query, options, self.store, hybrid=hybrid)

        return execute

    # ============ Planning ============

    def planner(self) -> QueryPlanner:
        return QueryPlanner.from_config(self.config, trace_id=self.trace_id)

    async def run_plan(
        self,
        goal: str,
        options: Optional[PlannerOptions] = None,
        hybrid: bool = True,
        k: Optional[int] = None,
        filter: Optional[MetadataFilter] = None,
    ) -> PlanExecutionResult:
        """Generate a plan for ``goal`` and drive it to a terminal status."""
        planner = self.planner()
        plan: Plan = planner.generate_plan(goal, options)
        return await planner.execute_plan(
            plan,
            self.query_executor(hybrid=hybrid, k=k, filter=filter),
            ExecutionOptions(timeout_ms=self.config.stage_timeout_ms, max_stages=self.config.max_stages),
        )
