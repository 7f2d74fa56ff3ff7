"""Custom exceptions for gistdex."""

from __future__ import annotations


class GistdexError(Exception):
    """Base exception for gistdex errors."""
    pass


class ConfigurationError(GistdexError):
    """Raised when there's a configuration error."""
    pass


class UnknownAdapterError(ConfigurationError):
    """Raised when a registry has no adapter under the requested name."""
    pass


class RetrievalError(GistdexError):
    """Raised when retrieval fails."""
    pass


class EmbeddingError(RetrievalError):
    """Raised when the embedder cannot produce a vector for a text."""
    pass


class StoreUnavailableError(RetrievalError):
    """Raised when the vector store is not initialized or cannot be reached."""
    pass


class DimensionMismatchError(GistdexError, ValueError):
    """Raised by strict similarity when two vectors differ in length."""
    pass


class PlanStateError(GistdexError):
    """Raised on an illegal plan status transition."""
    pass
