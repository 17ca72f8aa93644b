"""
Abstract Store Repository Interface

Defines the contract for vector store holders.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone

import numpy as np

from prorag.types import ContentUnit


@dataclass(frozen=True)
class VectorStore:
    """
    An immutable, named collection of units and their embeddings.

    Row ``i`` of ``matrix`` is the embedding of ``units[i]``. Blank-text
    units have an all-zero row.
    """

    store_key: str
    units: tuple[ContentUnit, ...]
    matrix: np.ndarray
    embedding_model: str = ""
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.matrix.shape[0] != len(self.units):
            raise ValueError(
                f"Store '{self.store_key}' has {len(self.units)} units "
                f"but {self.matrix.shape[0]} embedding rows"
            )
        self.matrix.setflags(write=False)

    def __len__(self) -> int:
        return len(self.units)

    @property
    def dimensions(self) -> int:
        return int(self.matrix.shape[1]) if self.matrix.ndim == 2 else 0


class StoreRepository(ABC):
    """
    Abstract interface for store holders.

    At most one store per key. ``put`` replaces any existing store for the
    key; ``delete`` is the only way a store goes away.
    """

    @abstractmethod
    def get(self, store_key: str) -> VectorStore | None:
        """Return the store for a key, or None."""
        ...

    @abstractmethod
    def put(self, store: VectorStore) -> None:
        """Insert or replace the store for ``store.store_key``."""
        ...

    @abstractmethod
    def delete(self, store_key: str) -> bool:
        """Remove a store. Returns True if one existed."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """Keys of all stores, in insertion order."""
        ...

    def __contains__(self, store_key: object) -> bool:
        return isinstance(store_key, str) and self.get(store_key) is not None
