"""
Milvus vector store - persistent storage on Milvus Lite or a Milvus server

Metadata is stored as a JSON field so exact-match filters translate into
Milvus boolean expressions.
"""

from __future__ import annotations

import asyncio
import json
import os
import uuid
from typing import Any, Dict, List, Optional, Sequence

from pymilvus import MilvusClient, MilvusException

from ..config.settings import AppConfig
from ..core.exceptions import DimensionMismatchError, RetrievalError, StoreUnavailableError
from ..core.types import MetadataFilter, ScoredResult
from ..retrieval.rankers import sort_by_score
from ..utils.logging import get_logger
from .filter import to_milvus_expression

_OUTPUT_FIELDS = ["content", "metadata"]
_ID_MAX_LENGTH = 64


def _parse_metadata(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


class MilvusVectorStore:
    """
    Milvus vector store

    Wraps the synchronous MilvusClient; every call runs in a worker thread so
    searches do not block the event loop.
    """

    def __init__(
        self,
        uri: str,
        collection_name: str,
        dimension: int = 768,
        client: Optional[MilvusClient] = None,
    ):
        self.uri = uri
        self.collection_name = collection_name
        self.dimension = dimension
        self.client: Optional[MilvusClient] = client
        self._initialized = False
        self.logger = get_logger("MilvusVectorStore")

    @classmethod
    def from_config(cls, config: AppConfig) -> "MilvusVectorStore":
        return cls(
            uri=config.milvus_uri,
            collection_name=config.milvus_collection,
            dimension=config.embedding_dim,
        )

    def is_initialized(self) -> bool:
        return self._initialized

    def _create_client(self) -> MilvusClient:
        # Milvus Lite needs the parent directory of a local .db file
        if "://" not in self.uri:
            db_dir = os.path.dirname(self.uri)
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir)
        return MilvusClient(uri=self.uri)

    def _ensure_collection(self) -> None:
        if self.client is None:
            self.client = self._create_client()
        if not self.client.has_collection(self.collection_name):
            self.logger.info(f"Creating collection {self.collection_name} (dim={self.dimension})")
            self.client.create_collection(
                collection_name=self.collection_name,
                dimension=self.dimension,
                metric_type="COSINE",
                id_type="string",
                max_length=_ID_MAX_LENGTH,
                auto_id=False,
            )

    async def initialize(self) -> None:
        if self._initialized:
            return
        try:
            await asyncio.to_thread(self._ensure_collection)
        except MilvusException as e:
            raise StoreUnavailableError(f"Milvus initialization failed: {e}") from e
        self._initialized = True

    async def close(self) -> None:
        if self.client is not None:
            await asyncio.to_thread(self.client.close)
        self.client = None
        self._initialized = False

    def _require_client(self) -> MilvusClient:
        if not self._initialized or self.client is None:
            raise StoreUnavailableError("MilvusVectorStore is not initialized")
        return self.client

    async def _call(self, method: str, **kwargs: Any) -> Any:
        client = self._require_client()
        try:
            return await asyncio.to_thread(getattr(client, method), **kwargs)
        except MilvusException as e:
            raise RetrievalError(f"Milvus {method} failed: {e}") from e

    async def search_similar(
        self,
        vector: Sequence[float],
        k: int,
        filter: Optional[MetadataFilter] = None,
    ) -> List[ScoredResult]:
        if k <= 0:
            raise ValueError("k must be positive")
        if len(vector) != self.dimension:
            raise DimensionMismatchError(
                f"Expected a {self.dimension}-dimensional query vector, got {len(vector)}"
            )

        results = await self._call(
            "search",
            collection_name=self.collection_name,
            data=[list(vector)],
            limit=k,
            filter=to_milvus_expression(filter),
            output_fields=_OUTPUT_FIELDS,
        )

        hits: List[ScoredResult] = []
        for group in results:
            for hit in group:
                entity = hit.get("entity", {})
                hits.append(
                    ScoredResult(
                        id=str(hit.get("id", "")),
                        content=entity.get("content", ""),
                        score=float(hit.get("distance", 0.0)),
                        metadata=_parse_metadata(entity.get("metadata")),
                    )
                )

        self.logger.debug(f"Milvus search returned {len(hits)} hits")
        return sort_by_score(hits)[:k]

    async def count_documents(self, filter: Optional[MetadataFilter] = None) -> int:
        rows = await self._call(
            "query",
            collection_name=self.collection_name,
            filter=to_milvus_expression(filter),
            output_fields=["count(*)"],
        )
        return int(rows[0]["count(*)"]) if rows else 0

    async def list_documents(
        self,
        limit: int = 100,
        offset: int = 0,
        filter: Optional[MetadataFilter] = None,
    ) -> List[ScoredResult]:
        rows = await self._call(
            "query",
            collection_name=self.collection_name,
            filter=to_milvus_expression(filter),
            output_fields=_OUTPUT_FIELDS,
            limit=limit,
            offset=offset,
        )
        return [
            ScoredResult(
                id=str(row.get("id", "")),
                content=row.get("content", ""),
                score=0.0,
                metadata=_parse_metadata(row.get("metadata")),
            )
            for row in rows
        ]

    async def store_document(
        self,
        content: str,
        vector: Sequence[float],
        metadata: Optional[Dict[str, Any]] = None,
        doc_id: Optional[str] = None,
    ) -> str:
        if len(vector) != self.dimension:
            raise DimensionMismatchError(
                f"Expected a {self.dimension}-dimensional vector, got {len(vector)}"
            )
        doc_id = doc_id or uuid.uuid4().hex
        await self._call(
            "insert",
            collection_name=self.collection_name,
            data=[{
                "id": doc_id,
                "vector": [float(x) for x in vector],
                "content": content,
                "metadata": metadata or {},
            }],
        )
        return doc_id

    async def remove_document(self, doc_id: str) -> bool:
        res = await self._call("delete", collection_name=self.collection_name, ids=[doc_id])
        if isinstance(res, dict):
            return int(res.get("delete_count", 0)) > 0
        return bool(res)
