"""Registry of embedding backends."""

from __future__ import annotations

from ..config.settings import AppConfig
from ..core.interfaces import Embedder
from ..core.registry import AdapterRegistry, AdapterSpec
from .hashing import HashEmbedder
from .ollama_embedder import OllamaEmbedder
from .openai_embedder import OpenAIEmbedder


EMBEDDER_REGISTRY: AdapterRegistry[Embedder] = AdapterRegistry(
    "embedder",
    [
        AdapterSpec(
            name="hash",
            factory=HashEmbedder.from_config,
            capabilities=frozenset({"offline", "deterministic"}),
            description="Signed feature hashing over lexical terms",
        ),
        AdapterSpec(
            name="ollama",
            factory=OllamaEmbedder.from_config,
            capabilities=frozenset({"local", "network"}),
            description="Local Ollama server embeddings",
        ),
        AdapterSpec(
            name="openai",
            factory=OpenAIEmbedder.from_config,
            capabilities=frozenset({"network", "api_key"}),
            description="OpenAI embeddings API",
        ),
    ],
)


def create_embedder(config: AppConfig) -> Embedder:
    """Build the embedder named by ``config.embedding_backend``."""
    return EMBEDDER_REGISTRY.create(config.embedding_backend, config)
