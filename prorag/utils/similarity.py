"""
Cosine Similarity

Dense-vector similarity used by retrieval and semantic dimension matching.

Zero vectors (blank-text units) have similarity 0 with everything.
Scores are clipped to [-1, 1] to absorb floating point drift.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from scipy.spatial.distance import cdist


def as_matrix(vectors: Sequence[Sequence[float]] | np.ndarray, dim: int | None = None) -> np.ndarray:
    """Stack vectors into a float64 (n x d) matrix."""
    if isinstance(vectors, np.ndarray):
        arr = vectors.astype(np.float64, copy=False)
    elif len(vectors) == 0:
        arr = np.zeros((0, dim or 0), dtype=np.float64)
    else:
        arr = np.array(vectors, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    return arr


def similarity_to_rows(query: Sequence[float] | np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of one query vector against every row of a matrix.

    Args:
        query: Query vector (d,)
        matrix: Candidate vectors (n x d)

    Returns:
        Array of n similarities in [-1, 1]; zero-norm rows (or a zero-norm
        query) score 0.
    """
    q = np.asarray(query, dtype=np.float64).reshape(1, -1)
    m = as_matrix(matrix)
    scores = np.zeros(m.shape[0], dtype=np.float64)
    if m.shape[0] == 0 or not np.any(q):
        return scores

    nonzero = np.linalg.norm(m, axis=1) > 0
    if np.any(nonzero):
        # cdist returns distance (1 - similarity), so we subtract from 1
        scores[nonzero] = 1 - cdist(q, m[nonzero], metric="cosine")[0]
    return np.clip(scores, -1.0, 1.0)


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine similarity of two vectors (0.0 if either is all zeros)."""
    return float(similarity_to_rows(a, as_matrix(np.asarray(b, dtype=np.float64)))[0])
