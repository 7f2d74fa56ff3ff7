"""Deterministic feature-hashing embedder.

Useful offline and in tests: texts sharing terms land close together, and the
same text always maps to the same vector across processes.
"""

from __future__ import annotations

import hashlib
from typing import List

import numpy as np

from ..config.settings import AppConfig
from ..utils.text import tokenize_terms


class HashEmbedder:
    """Bag-of-terms embedder using signed feature hashing."""

    def __init__(self, dimension: int = 768):
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension

    @classmethod
    def from_config(cls, config: AppConfig) -> "HashEmbedder":
        return cls(dimension=config.embedding_dim)

    def embed_sync(self, text: str) -> List[float]:
        vec = np.zeros(self.dimension, dtype=np.float64)
        for feature in tokenize_terms(text):
            digest = hashlib.md5(feature.encode("utf-8")).digest()
            index = int.from_bytes(digest[:4], "little") % self.dimension
            sign = 1.0 if digest[4] & 1 else -1.0
            vec[index] += sign

        norm = np.linalg.norm(vec)
        if norm > 0:
            vec /= norm
        return vec.tolist()

    async def embed(self, text: str) -> List[float]:
        return self.embed_sync(text)
