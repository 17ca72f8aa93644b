"""
Error Types

Failure taxonomy for the retrieval and graph pipeline.

    ProRAGError
    ├── ValidationError        bad column roles, unknown columns, rejected fields
    ├── StoreNotFoundError     query against an unbuilt or deleted store
    ├── RetrievalError         embedding / search backend failure (wrapped)
    ├── GenerationError        LLM call failure (wrapped)
    └── OperationTimeoutError  deadline exceeded on an external call

Insufficient context (zero relevant units) is not an error: the prompt
instructs the model to answer "No more info available."
"""

from __future__ import annotations


class ProRAGError(Exception):
    """Base class for all ProRAG errors."""


class ValidationError(ProRAGError, ValueError):
    """Invalid caller input. Surfaced immediately, never retried."""


class StoreNotFoundError(ProRAGError, LookupError):
    """No store has been built for the requested key."""

    def __init__(self, store_key: str) -> None:
        self.store_key = store_key
        super().__init__(
            f'No store found for store_key="{store_key}". Did you build the store?'
        )


class RetrievalError(ProRAGError):
    """Embedding or vector search failed."""


class GenerationError(ProRAGError):
    """The LLM collaborator failed to produce an answer."""


class OperationTimeoutError(ProRAGError, TimeoutError):
    """An external call did not finish before its deadline."""

    def __init__(self, operation: str, timeout: float) -> None:
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout:g}s")


__all__ = [
    "ProRAGError",
    "ValidationError",
    "StoreNotFoundError",
    "RetrievalError",
    "GenerationError",
    "OperationTimeoutError",
]
