"""
Embedding Index

Build time: embed unit texts in batches and store the matrix.
Query time: embed the query text and rank units by cosine similarity.

Ranking rules:
    - Descending similarity; ties keep unit insertion order
    - k is clamped to the number of units; k <= 0 yields no results
    - Blank-text units are never sent to the embedder and score 0
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import numpy as np

from prorag.errors import OperationTimeoutError, RetrievalError, StoreNotFoundError
from prorag.storage import StoreRepository, VectorStore
from prorag.types import ContentUnit, RetrievedUnit
from prorag.utils.deadline import run_with_deadline
from prorag.utils.similarity import similarity_to_rows

if TYPE_CHECKING:
    from prorag.providers.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class EmbeddingIndex:
    """
    Cosine-similarity index over content units.

    Args:
        embeddings: Provider used for unit and query embeddings
        repository: Where built stores are kept
        batch_size: Texts per embedding call at build time
        timeout: Deadline in seconds for each embedding call (None disables)
    """

    def __init__(
        self,
        embeddings: "EmbeddingProvider",
        repository: StoreRepository,
        *,
        batch_size: int = 100,
        timeout: float | None = 30.0,
    ) -> None:
        self._embeddings = embeddings
        self._repository = repository
        self._batch_size = max(1, batch_size)
        self._timeout = timeout

    @property
    def repository(self) -> StoreRepository:
        return self._repository

    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        try:
            vectors = await run_with_deadline(
                self._embeddings.embed(texts),
                self._timeout,
                operation="embedding",
            )
        except OperationTimeoutError:
            logger.error(f"Embedding {len(texts)} texts timed out")
            raise
        except Exception as exc:
            logger.error(f"Embedding {len(texts)} texts failed: {exc}")
            raise RetrievalError(f"Embedding provider failed: {exc}") from exc

        if len(vectors) != len(texts):
            raise RetrievalError(
                f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts"
            )
        return vectors

    async def build_index(self, store_key: str, units: list[ContentUnit]) -> VectorStore:
        """
        Embed units and store them under ``store_key``.

        Replaces any existing store for the key.

        Raises:
            RetrievalError: If the embedding provider fails
            OperationTimeoutError: If an embedding call exceeds its deadline
        """
        start = time.perf_counter_ns()

        embed_positions = [i for i, unit in enumerate(units) if unit.text.strip()]
        texts = [units[i].text for i in embed_positions]

        vectors: list[list[float]] = []
        for offset in range(0, len(texts), self._batch_size):
            vectors.extend(await self._embed_batch(texts[offset : offset + self._batch_size]))

        dim = len(vectors[0]) if vectors else self._embeddings.dimensions
        matrix = np.zeros((len(units), dim), dtype=np.float64)
        if vectors:
            try:
                matrix[embed_positions] = np.asarray(vectors, dtype=np.float64)
            except ValueError as exc:
                raise RetrievalError(f"Inconsistent embedding dimensions: {exc}") from exc

        store = VectorStore(
            store_key=store_key,
            units=tuple(units),
            matrix=matrix,
            embedding_model=self._embeddings.model_name,
        )
        self._repository.put(store)

        elapsed_ms = (time.perf_counter_ns() - start) // 1_000_000
        logger.info(
            f"Built store '{store_key}': {len(units)} units "
            f"({len(units) - len(embed_positions)} blank) in {elapsed_ms}ms"
        )
        return store

    async def embed_query(self, query_text: str) -> np.ndarray:
        """Embed query text; blank text maps to a zero vector without a provider call."""
        if not query_text.strip():
            return np.zeros(0, dtype=np.float64)
        try:
            vector = await run_with_deadline(
                self._embeddings.embed_single(query_text),
                self._timeout,
                operation="query embedding",
            )
        except OperationTimeoutError:
            logger.error("Query embedding timed out")
            raise
        except Exception as exc:
            logger.error(f"Query embedding failed: {exc}")
            raise RetrievalError(f"Embedding provider failed: {exc}") from exc
        return np.asarray(vector, dtype=np.float64)

    async def search(self, store_key: str, query_text: str, k: int) -> list[RetrievedUnit]:
        """
        Return the top-k units for the query text.

        Raises:
            StoreNotFoundError: If no store exists for the key
            RetrievalError: If the embedding provider fails
            OperationTimeoutError: If the query embedding exceeds its deadline
        """
        store = self._repository.get(store_key)
        if store is None:
            raise StoreNotFoundError(store_key)

        k = min(k, len(store))
        if k <= 0:
            return []

        query_vector = await self.embed_query(query_text)
        if query_vector.size == 0:
            scores = np.zeros(len(store), dtype=np.float64)
        else:
            if store.dimensions and query_vector.shape[0] != store.dimensions:
                raise RetrievalError(
                    f"Query embedding has {query_vector.shape[0]} dimensions, "
                    f"store '{store_key}' has {store.dimensions}"
                )
            scores = similarity_to_rows(query_vector, store.matrix)

        # Stable sort keeps insertion order among equal scores
        order = np.argsort(-scores, kind="stable")[:k]
        return [
            RetrievedUnit(unit=store.units[i], score=float(scores[i]), rank=rank)
            for rank, i in enumerate(order)
        ]
