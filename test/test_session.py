"""
Tests for SearchSession: adapter resolution, search wrappers, planning and cleanup.
"""

import asyncio

import pytest

from gistdex.config.settings import AppConfig
from gistdex.core.exceptions import UnknownAdapterError
from gistdex.core.types import PlanStatus
from gistdex.embedding.hashing import HashEmbedder
from gistdex.vectorstore.memory import InMemoryVectorStore

from gistdex.session import SearchSession

DOCS = [
    ("vec", "vector database configuration", {"lang": "en"}),
    ("pasta", "cooking pasta recipe", {"lang": "it"}),
    ("milvus", "milvus lite stores vectors in a local file", {"lang": "en"}),
]


async def _open_with_docs(config=None):
    session = await SearchSession.open(config or AppConfig())
    for doc_id, content, metadata in DOCS:
        vector = await session.embedder.embed(content)
        await session.store.store_document(content, vector, metadata=metadata, doc_id=doc_id)
    return session


def test_open_resolves_default_adapters():
    async def run():
        session = await SearchSession.open(AppConfig(embedding_dim=64))
        kinds = (type(session.embedder), type(session.store), session.store.is_initialized())
        await session.close()
        return kinds, session.store.is_initialized()

    (embedder_type, store_type, initialized), after_close = asyncio.run(run())
    assert embedder_type is HashEmbedder
    assert store_type is InMemoryVectorStore
    assert initialized
    assert not after_close


def test_open_unknown_backend():
    with pytest.raises(UnknownAdapterError):
        asyncio.run(SearchSession.open(AppConfig(vector_store="sqlite")))


def test_semantic_and_hybrid_search():
    async def run():
        async with await _open_with_docs() as session:
            semantic = await session.semantic_search("vector database", k=2)
            hybrid = await session.hybrid_search("vector database", k=2)
            filtered = await session.search("vector database", hybrid=True, filter={"lang": "it"})
            return semantic, hybrid, filtered

    semantic, hybrid, filtered = asyncio.run(run())
    assert semantic[0].id == "vec"
    assert hybrid[0].id == "vec"
    assert len(semantic) == 2
    assert [r.id for r in filtered] == ["pasta"]


def test_options_fall_back_to_config():
    session = SearchSession(
        AppConfig(top_k=7, keyword_weight=0.2, rerank=True, rerank_boost=0.3),
        HashEmbedder(dimension=16),
        InMemoryVectorStore(dimension=16),
    )
    options = session.options()
    assert (options.k, options.keyword_weight, options.rerank, options.boost_factor) == (7, 0.2, True, 0.3)
    assert session.options(k=2, keyword_weight=0.0, rerank=False).k == 2
    with pytest.raises(ValueError):
        session.options(k=0)


def test_query_executor_and_run_plan():
    async def run():
        async with await _open_with_docs() as session:
            execute = session.query_executor(hybrid=True, k=1)
            direct = await execute("vector database")
            outcome = await session.run_plan("vector database", k=1)
            return direct, outcome

    direct, outcome = asyncio.run(run())
    assert [r.id for r in direct] == ["vec"]
    assert outcome.plan.status == PlanStatus.succeeded
    assert outcome.best_results[0].id == "vec"


def test_close_is_idempotent():
    async def run():
        session = await SearchSession.open(AppConfig(embedding_dim=16))
        await session.close()
        await session.close()
        return session.store.is_initialized()

    assert asyncio.run(run()) is False
