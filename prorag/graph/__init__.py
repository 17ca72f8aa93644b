"""
Relationship Graph

Modules:
    taxonomy: Built-in and file-based taxonomies of framework dimensions
    matching: Keyword and semantic dimension matching
    builder: Units -> deduplicated nodes and edges

Example:
    >>> loader = TaxonomyLoader()
    >>> graph = await GraphBuilder().build(units, loader.load("AIA"))
    >>> graph.nodes_of_type("dimension")
"""

from prorag.graph.builder import GraphBuilder
from prorag.graph.matching import (
    DimensionEmbeddingCache,
    KeywordMatchStrategy,
    MatchStrategy,
    SemanticMatchStrategy,
)
from prorag.graph.taxonomy import TaxonomyLoader

__all__ = [
    "GraphBuilder",
    "MatchStrategy",
    "KeywordMatchStrategy",
    "SemanticMatchStrategy",
    "DimensionEmbeddingCache",
    "TaxonomyLoader",
]
