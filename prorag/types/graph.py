"""
Graph and Taxonomy Types

Models:
    - NodeType, Relation: Closed vocabularies for the graph
    - GraphNode, GraphEdge, GraphData: Materialized relationship graph
    - DimensionDescriptor: One taxonomy dimension (immutable)
    - Taxonomy: Named set of dimensions (e.g. a design-excellence framework)
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeType(str, Enum):
    """Graph node classification."""

    STRATEGY = "strategy"
    DEPENDENCY = "dependency"
    REFERENCE = "reference"
    DIMENSION = "dimension"


class Relation(str, Enum):
    """Graph edge relation."""

    ADDRESSES = "addresses"
    REFERENCES = "references"
    ALIGNED_WITH = "alignedWith"


class GraphNode(BaseModel):
    """A graph node. Identity is the ``id``."""

    id: str
    label: str
    type: NodeType

    model_config = ConfigDict(use_enum_values=True)


class GraphEdge(BaseModel):
    """A directed edge from a strategy node."""

    source: str
    target: str
    relation: Relation

    model_config = ConfigDict(use_enum_values=True)


class GraphData(BaseModel):
    """Nodes and edges of a materialized graph."""

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.nodes

    def nodes_of_type(self, node_type: NodeType | str) -> list[GraphNode]:
        """Nodes with the given type."""
        wanted = NodeType(node_type).value
        return [n for n in self.nodes if n.type == wanted]

    def edges_of_relation(self, relation: Relation | str) -> list[GraphEdge]:
        """Edges with the given relation."""
        wanted = Relation(relation).value
        return [e for e in self.edges if e.relation == wanted]


class DimensionDescriptor(BaseModel):
    """
    One dimension of an external taxonomy.

    Descriptors are immutable; embeddings for semantic matching are cached
    separately by descriptor id.
    """

    id: str
    name: str
    keywords: tuple[str, ...] = ()
    description: str = ""

    model_config = ConfigDict(frozen=True)

    @field_validator("keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(value)

    def embedding_text(self) -> str:
        """Text embedded for semantic matching: ``"{name}. {description}"``."""
        return f"{self.name}. {self.description or ''}"


class Taxonomy(BaseModel):
    """A named set of dimensions."""

    name: str = ""
    dimensions: list[DimensionDescriptor] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.dimensions
