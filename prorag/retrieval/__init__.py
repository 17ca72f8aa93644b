"""
Retrieval

Modules:
    index: EmbeddingIndex (build embeddings, cosine top-K search)
    retriever: Retriever (default k, timing)
"""

from prorag.retrieval.index import EmbeddingIndex
from prorag.retrieval.retriever import DEFAULT_TOP_K, Retriever

__all__ = ["EmbeddingIndex", "Retriever", "DEFAULT_TOP_K"]
