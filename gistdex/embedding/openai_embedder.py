"""OpenAI embeddings API adapter."""

from __future__ import annotations

from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError

from ..config.settings import AppConfig
from ..core.exceptions import ConfigurationError, EmbeddingError
from ..utils.logging import get_logger


class OpenAIEmbedder:
    """Embedder backed by the OpenAI embeddings endpoint."""

    def __init__(
        self,
        model: str,
        dimension: int,
        api_key: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None and not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required for the openai embedding backend")
        self.model = model
        self.dimension = dimension
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.logger = get_logger("OpenAIEmbedder")

    @classmethod
    def from_config(cls, config: AppConfig) -> "OpenAIEmbedder":
        return cls(
            model=config.embedding_model,
            dimension=config.embedding_dim,
            api_key=config.openai_api_key,
        )

    async def embed(self, text: str) -> List[float]:
        text = (text or "").replace("\n", " ").strip()
        if not text:
            return [0.0] * self.dimension

        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimension,
            )
        except OpenAIError as e:
            self.logger.error(f"OpenAI embedding call failed: {e}")
            raise EmbeddingError(f"OpenAI embedding failed: {e}") from e

        if not response.data:
            raise EmbeddingError("OpenAI returned no embedding")
        embedding = list(response.data[0].embedding)
        if len(embedding) != self.dimension:
            raise EmbeddingError(
                f"Embedding dimension mismatch, expected {self.dimension}, got {len(embedding)}"
            )
        return embedding
