"""
In-Memory Store Repository

Process-local store holder. Nothing is persisted.
"""

from __future__ import annotations

import logging

from prorag.storage.base import StoreRepository, VectorStore

logger = logging.getLogger(__name__)


class InMemoryStoreRepository(StoreRepository):
    """Dict-backed store repository."""

    def __init__(self) -> None:
        self._stores: dict[str, VectorStore] = {}

    def get(self, store_key: str) -> VectorStore | None:
        return self._stores.get(store_key)

    def put(self, store: VectorStore) -> None:
        if store.store_key in self._stores:
            logger.info(f"Replacing store '{store.store_key}'")
        self._stores[store.store_key] = store

    def delete(self, store_key: str) -> bool:
        return self._stores.pop(store_key, None) is not None

    def keys(self) -> list[str]:
        return list(self._stores)

    def __len__(self) -> int:
        return len(self._stores)
