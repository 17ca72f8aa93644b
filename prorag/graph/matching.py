"""
Dimension Matching

Strategies that decide which taxonomy dimensions a unit's text aligns with.

Strategies:
    - KeywordMatchStrategy: case-insensitive substring containment of any keyword
    - SemanticMatchStrategy: cosine(unit embedding, dimension embedding) >= threshold

Dimension embeddings are computed once per descriptor id and kept in a
DimensionEmbeddingCache, separate from the immutable descriptors.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from prorag.types import DimensionDescriptor
from prorag.utils.deadline import run_with_deadline
from prorag.utils.similarity import similarity_to_rows

if TYPE_CHECKING:
    from prorag.providers.base import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_SEMANTIC_THRESHOLD = 0.78


class MatchStrategy(ABC):
    """Decides which dimensions a piece of text aligns with."""

    @abstractmethod
    async def match(
        self,
        text: str,
        dimensions: Sequence[DimensionDescriptor],
    ) -> list[DimensionDescriptor]:
        """Return the matching dimensions, in taxonomy order."""
        ...


class KeywordMatchStrategy(MatchStrategy):
    """Matches when any keyword occurs in the text, ignoring case."""

    async def match(
        self,
        text: str,
        dimensions: Sequence[DimensionDescriptor],
    ) -> list[DimensionDescriptor]:
        lowered = text.lower()
        return [
            dim
            for dim in dimensions
            if any(kw.strip() and kw.lower() in lowered for kw in dim.keywords)
        ]


class DimensionEmbeddingCache:
    """
    Embeddings of dimension descriptors, keyed by descriptor id.

    Each id is embedded at most once; concurrent requests for the same id
    wait on a per-id lock.
    """

    def __init__(
        self,
        embeddings: "EmbeddingProvider",
        *,
        timeout: float | None = 30.0,
    ) -> None:
        self._embeddings = embeddings
        self._timeout = timeout
        self._vectors: dict[str, np.ndarray] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._locks_lock = asyncio.Lock()

    def __contains__(self, dimension_id: object) -> bool:
        return dimension_id in self._vectors

    def __len__(self) -> int:
        return len(self._vectors)

    async def get(self, dimension: DimensionDescriptor) -> np.ndarray:
        """Embedding of ``dimension.embedding_text()``, computed on first use."""
        cached = self._vectors.get(dimension.id)
        if cached is not None:
            return cached

        # Create per-id lock if needed
        async with self._locks_lock:
            lock = self._locks.setdefault(dimension.id, asyncio.Lock())

        async with lock:
            # Double-check after acquiring the lock
            cached = self._vectors.get(dimension.id)
            if cached is not None:
                return cached

            vector = await run_with_deadline(
                self._embeddings.embed_single(dimension.embedding_text()),
                self._timeout,
                operation="dimension embedding",
            )
            arr = np.asarray(vector, dtype=np.float64)
            self._vectors[dimension.id] = arr
            logger.debug(f"Embedded dimension '{dimension.id}'")
            return arr

    def clear(self) -> None:
        self._vectors.clear()
        self._locks.clear()


class SemanticMatchStrategy(MatchStrategy):
    """
    Matches when the text embedding is close to a dimension embedding.

    Args:
        embeddings: Provider for text and dimension embeddings
        threshold: Minimum cosine similarity (default 0.78)
        cache: Shared dimension embedding cache (created if omitted)
        timeout: Deadline for each embedding call
    """

    def __init__(
        self,
        embeddings: "EmbeddingProvider",
        *,
        threshold: float = DEFAULT_SEMANTIC_THRESHOLD,
        cache: DimensionEmbeddingCache | None = None,
        timeout: float | None = 30.0,
    ) -> None:
        self._embeddings = embeddings
        self.threshold = threshold
        if cache is None:
            cache = DimensionEmbeddingCache(embeddings, timeout=timeout)
        self.cache = cache
        self._timeout = timeout

    async def match(
        self,
        text: str,
        dimensions: Sequence[DimensionDescriptor],
    ) -> list[DimensionDescriptor]:
        if not text.strip() or not dimensions:
            return []

        text_vector = await run_with_deadline(
            self._embeddings.embed_single(text),
            self._timeout,
            operation="unit embedding",
        )
        dim_vectors = await asyncio.gather(*(self.cache.get(dim) for dim in dimensions))

        scores = similarity_to_rows(text_vector, np.vstack(dim_vectors))
        return [dim for dim, score in zip(dimensions, scores) if score >= self.threshold]
