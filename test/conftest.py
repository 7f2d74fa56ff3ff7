"""Shared fixtures: a scripted embedder and a small in-memory corpus."""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from gistdex.core.types import ExpectedResults, PlanStage, ScoredResult
from gistdex.vectorstore.memory import InMemoryVectorStore


class ScriptedEmbedder:
    """Returns fixed vectors per text and records every call."""

    def __init__(self, vectors: Optional[Dict[str, Sequence[float]]] = None, default=(1.0, 0.0, 0.0)):
        self.vectors = dict(vectors or {})
        self.default = list(default)
        self.dimension = len(self.default)
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))


class FailingEmbedder:
    dimension = 3

    async def embed(self, text: str) -> List[float]:
        raise RuntimeError("embedding service down")


CORPUS = [
    ("doc-a", "vector database configuration guide", [1.0, 0.0, 0.0],
     {"lang": "en", "boundary": {"type": "heading"}}),
    ("doc-b", "setup of embeddings", [0.9, 0.1, 0.0], {"lang": "en"}),
    ("doc-c", "unrelated cooking recipe", [0.0, 1.0, 0.0], {"lang": "fr"}),
    ("doc-d", "database setup tutorial", [0.7, 0.7, 0.0],
     {"lang": "en", "boundary": {"type": "code"}}),
]


async def _populate(store: InMemoryVectorStore) -> InMemoryVectorStore:
    await store.initialize()
    for doc_id, content, vector, metadata in CORPUS:
        await store.store_document(content, vector, metadata=metadata, doc_id=doc_id)
    return store


@pytest.fixture
def embedder():
    return ScriptedEmbedder()


@pytest.fixture
def corpus_store():
    return asyncio.run(_populate(InMemoryVectorStore(dimension=3)))


@pytest.fixture
def make_stage():
    def _make(keywords=("vector", "database"), min_matches=1, min_confidence=0.6, patterns=()):
        return PlanStage(
            stage_number=0,
            description="Initial search",
            query=" ".join(keywords),
            expected_results=ExpectedResults(
                keywords=list(keywords),
                patterns=list(patterns),
                min_confidence=min_confidence,
                min_matches=min_matches,
            ),
        )
    return _make


def result(doc_id: str, content: str, score: float, **metadata) -> ScoredResult:
    return ScoredResult(id=doc_id, content=content, score=score, metadata=metadata)
