"""
Retriever

Top-K search keyed by store key, with a configured default k.
"""

from __future__ import annotations

import logging
import time

from prorag.retrieval.index import EmbeddingIndex
from prorag.types import RetrievedUnit

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10


class Retriever:
    """Applies default k and logs search timing over an EmbeddingIndex."""

    def __init__(self, index: EmbeddingIndex, *, default_k: int = DEFAULT_TOP_K) -> None:
        self._index = index
        self._default_k = default_k

    async def retrieve(
        self,
        store_key: str,
        query_text: str,
        k: int | None = None,
    ) -> list[RetrievedUnit]:
        """
        Retrieve the most similar units, best first.

        Args:
            store_key: Store to search
            query_text: Text to embed and compare
            k: Number of units (None uses the default)

        Raises:
            StoreNotFoundError: If no store exists for the key
        """
        k = self._default_k if k is None else k
        start = time.perf_counter_ns()

        results = await self._index.search(store_key, query_text, k)

        elapsed_ms = (time.perf_counter_ns() - start) // 1_000_000
        top = f", top score {results[0].score:.3f}" if results else ""
        logger.info(f"Retrieved {len(results)}/{k} units from '{store_key}' in {elapsed_ms}ms{top}")
        return results
