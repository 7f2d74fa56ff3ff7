"""
Embedding backends

- HashEmbedder: deterministic, offline feature hashing
- OllamaEmbedder: local Ollama server
- OpenAIEmbedder: OpenAI embeddings API
"""

from .hashing import HashEmbedder
from .ollama_embedder import OllamaEmbedder
from .openai_embedder import OpenAIEmbedder
from .registry import EMBEDDER_REGISTRY, create_embedder

__all__ = [
    "HashEmbedder",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "EMBEDDER_REGISTRY",
    "create_embedder",
]
