"""
Ollama embedder - embeddings from a locally running Ollama server
"""

from __future__ import annotations

from typing import List, Optional

import ollama

from ..config.settings import AppConfig
from ..core.exceptions import EmbeddingError
from ..utils.logging import get_logger


class OllamaEmbedder:
    """
    Ollama embedder

    Calls the Ollama embeddings endpoint and checks the vector dimension
    against the configured one.
    """

    def __init__(
        self,
        model: str,
        dimension: int,
        host: Optional[str] = None,
        client: Optional[ollama.AsyncClient] = None,
    ):
        self.model = model
        self.dimension = dimension
        self.client = client or ollama.AsyncClient(host=host)
        self.logger = get_logger("OllamaEmbedder")

    @classmethod
    def from_config(cls, config: AppConfig) -> "OllamaEmbedder":
        return cls(
            model=config.embedding_model,
            dimension=config.embedding_dim,
            host=config.ollama_base_url,
        )

    async def embed(self, text: str) -> List[float]:
        text = (text or "").replace("\n", " ").strip()
        if not text:
            return [0.0] * self.dimension

        try:
            response = await self.client.embeddings(model=self.model, prompt=text)
        except Exception as e:
            self.logger.error(f"Ollama embedding call failed: {e}")
            raise EmbeddingError(f"Ollama embedding failed: {e}") from e

        embedding = list(response.get("embedding") or [])
        if len(embedding) != self.dimension:
            raise EmbeddingError(
                f"Embedding dimension mismatch, expected {self.dimension}, got {len(embedding)}"
            )
        return embedding
