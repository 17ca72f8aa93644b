"""
Utility Functions

Helpers shared across retrieval, graph building and the pipeline.

Modules:
    similarity: Cosine similarity over dense vectors (numpy + scipy)
    deadline: Deadlines for provider calls
    text: Cell coercion and label normalization
"""

from prorag.utils.deadline import run_with_deadline
from prorag.utils.similarity import cosine_similarity, similarity_to_rows
from prorag.utils.text import cell_text, collapse_newlines, normalize_label, split_tag_values

__all__ = [
    "run_with_deadline",
    "cosine_similarity",
    "similarity_to_rows",
    "cell_text",
    "collapse_newlines",
    "normalize_label",
    "split_tag_values",
]
