"""
Type Definitions

Pydantic models for all data structures.

Content Models:
    - Role, UnitTags, ContentUnit, ColumnRoleMap

Query Models:
    - QueryField, CustomField, QueryContext, AssembledQuery

Graph Models:
    - NodeType, Relation, GraphNode, GraphEdge, GraphData
    - DimensionDescriptor, Taxonomy

Result Models:
    - RetrievedUnit, BuildResult, PromptMode, QueryResult
"""

from prorag.types.graph import (
    DimensionDescriptor,
    GraphData,
    GraphEdge,
    GraphNode,
    NodeType,
    Relation,
    Taxonomy,
)
from prorag.types.query import AssembledQuery, CustomField, QueryContext, QueryField
from prorag.types.results import BuildResult, PromptMode, QueryResult, RetrievedUnit
from prorag.types.units import ColumnRoleMap, ContentUnit, Role, UnitTags

__all__ = [
    # Content Models
    "Role",
    "UnitTags",
    "ContentUnit",
    "ColumnRoleMap",
    # Query Models
    "QueryField",
    "CustomField",
    "QueryContext",
    "AssembledQuery",
    # Graph Models
    "NodeType",
    "Relation",
    "GraphNode",
    "GraphEdge",
    "GraphData",
    "DimensionDescriptor",
    "Taxonomy",
    # Result Models
    "RetrievedUnit",
    "BuildResult",
    "PromptMode",
    "QueryResult",
]
