"""
Store Repositories

Holders for built vector stores, keyed by store key.

Modules:
    base: VectorStore and the abstract StoreRepository interface
    memory: In-process dict-backed repository

Design Principles:
    - Stores are immutable once built
    - Rebuilding a key replaces the whole store
    - Deletion is explicit
"""

from prorag.storage.base import StoreRepository, VectorStore
from prorag.storage.memory import InMemoryStoreRepository

__all__ = ["StoreRepository", "VectorStore", "InMemoryStoreRepository"]
