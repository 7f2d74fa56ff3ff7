"""
Tests for the in-memory vector store.
"""

import asyncio

import pytest

from gistdex.core.exceptions import DimensionMismatchError, StoreUnavailableError
from gistdex.core.interfaces import VectorStore
from gistdex.vectorstore.memory import InMemoryVectorStore


def test_implements_vector_store_protocol():
    assert isinstance(InMemoryVectorStore(), VectorStore)


def test_requires_initialize():
    store = InMemoryVectorStore(dimension=3)
    assert not store.is_initialized()
    with pytest.raises(StoreUnavailableError):
        asyncio.run(store.search_similar([1.0, 0.0, 0.0], k=1))


def test_search_ranks_by_cosine(corpus_store):
    hits = asyncio.run(corpus_store.search_similar([0.0, 1.0, 0.0], k=2))
    assert [h.id for h in hits] == ["doc-c", "doc-d"]
    assert hits[0].score == pytest.approx(1.0)


def test_search_with_filter(corpus_store):
    hits = asyncio.run(corpus_store.search_similar([1.0, 0.0, 0.0], k=10, filter={"lang": "fr"}))
    assert [h.id for h in hits] == ["doc-c"]


def test_equal_scores_keep_insertion_order():
    async def run():
        store = InMemoryVectorStore(dimension=2)
        await store.initialize()
        for doc_id in ("first", "second", "third"):
            await store.store_document(doc_id, [1.0, 0.0], doc_id=doc_id)
        return await store.search_similar([1.0, 0.0], k=3)

    assert [h.id for h in asyncio.run(run())] == ["first", "second", "third"]


def test_count_list_and_remove(corpus_store):
    assert asyncio.run(corpus_store.count_documents()) == 4
    assert asyncio.run(corpus_store.count_documents({"lang": "en"})) == 3

    page = asyncio.run(corpus_store.list_documents(limit=2, offset=1))
    assert [d.id for d in page] == ["doc-b", "doc-c"]

    assert asyncio.run(corpus_store.remove_document("doc-b"))
    assert not asyncio.run(corpus_store.remove_document("doc-b"))
    assert asyncio.run(corpus_store.count_documents()) == 3


def test_returned_metadata_is_a_copy(corpus_store):
    hit = asyncio.run(corpus_store.search_similar([1.0, 0.0, 0.0], k=1))[0]
    hit.metadata["lang"] = "changed"
    again = asyncio.run(corpus_store.search_similar([1.0, 0.0, 0.0], k=1))[0]
    assert again.metadata["lang"] == "en"


def test_store_rejects_wrong_dimension(corpus_store):
    with pytest.raises(DimensionMismatchError):
        asyncio.run(corpus_store.store_document("short", [1.0, 0.0]))


def test_store_generates_ids(corpus_store):
    doc_id = asyncio.run(corpus_store.store_document("new", [0.0, 0.0, 1.0]))
    assert doc_id
    assert asyncio.run(corpus_store.count_documents()) == 5


def test_close_marks_store_uninitialized(corpus_store):
    asyncio.run(corpus_store.close())
    assert not corpus_store.is_initialized()
    with pytest.raises(StoreUnavailableError):
        asyncio.run(corpus_store.count_documents())


def test_invalid_k(corpus_store):
    with pytest.raises(ValueError):
        asyncio.run(corpus_store.search_similar([1.0, 0.0, 0.0], k=0))
