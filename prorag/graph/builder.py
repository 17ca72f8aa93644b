"""
Graph Builder

Materializes a relationship graph from content units.

Per unit i:
    - strategy node "strategy-{i}" labelled with the start of the unit text
    - dependency tokens -> "dependency-{label}" nodes, edge "addresses"
    - reference tokens -> "reference-{label}" nodes, edge "references"
    - matching taxonomy dimensions -> "dimension-{id}" nodes, edge "alignedWith"

Token labels are normalized (case-folded, whitespace collapsed) for node
identity, so the same dependency across units is one node. Edges are
deduplicated by (source, target, relation).

Building never fails on empty input or a missing taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from prorag.graph.matching import KeywordMatchStrategy, MatchStrategy
from prorag.types import (
    ContentUnit,
    DimensionDescriptor,
    GraphData,
    GraphEdge,
    GraphNode,
    NodeType,
    Relation,
    RetrievedUnit,
    Taxonomy,
)
from prorag.utils.text import collapse_newlines, normalize_label, split_tag_values

logger = logging.getLogger(__name__)

DEFAULT_LABEL_LENGTH = 80


class _GraphAccumulator:
    """Insertion-ordered node and edge sets."""

    def __init__(self) -> None:
        self.nodes: dict[str, GraphNode] = {}
        self.edges: dict[tuple[str, str, str], GraphEdge] = {}

    def add_node(self, node_id: str, label: str, node_type: NodeType) -> str:
        if node_id not in self.nodes:
            self.nodes[node_id] = GraphNode(id=node_id, label=label, type=node_type)
        return node_id

    def add_edge(self, source: str, target: str, relation: Relation) -> None:
        key = (source, target, relation.value)
        if key not in self.edges:
            self.edges[key] = GraphEdge(source=source, target=target, relation=relation)

    def to_graph(self) -> GraphData:
        return GraphData(nodes=list(self.nodes.values()), edges=list(self.edges.values()))


class GraphBuilder:
    """
    Builds GraphData from units and an optional taxonomy.

    Args:
        label_length: Characters of unit text used for strategy labels
    """

    def __init__(self, label_length: int = DEFAULT_LABEL_LENGTH) -> None:
        self.label_length = label_length

    def strategy_label(self, text: str, index: int) -> str:
        """First ``label_length`` characters with newlines collapsed."""
        label = collapse_newlines(text[: self.label_length]).strip()
        return label or f"Strategy #{index + 1}"

    async def _match_all(
        self,
        units: list[tuple[int, ContentUnit]],
        dimensions: Sequence[DimensionDescriptor],
        strategy: MatchStrategy,
    ) -> dict[int, list[DimensionDescriptor]]:
        results = await asyncio.gather(
            *(strategy.match(unit.text, dimensions) for _, unit in units),
            return_exceptions=True,
        )

        matches: dict[int, list[DimensionDescriptor]] = {}
        for (index, unit), result in zip(units, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Dimension matching failed for unit '{unit.id}': {result}")
                matches[index] = []
            else:
                matches[index] = result
        return matches

    async def build(
        self,
        units: Sequence[ContentUnit | RetrievedUnit | None] | None,
        taxonomy: Taxonomy | None = None,
        *,
        strategy: MatchStrategy | None = None,
    ) -> GraphData:
        """
        Build the graph.

        Args:
            units: Units (or retrieved units) in display order; None entries are skipped
            taxonomy: Optional dimensions to align strategies with
            strategy: Dimension matcher (keyword matching by default)

        Returns:
            GraphData; empty when there are no units
        """
        if not units:
            return GraphData()

        start = time.perf_counter_ns()

        present: list[tuple[int, ContentUnit]] = []
        for index, item in enumerate(units):
            if item is None:
                logger.warning(f"Skipping missing unit at position {index}")
                continue
            present.append((index, item.unit if isinstance(item, RetrievedUnit) else item))

        dimension_matches: dict[int, list[DimensionDescriptor]] = {}
        if taxonomy is not None and not taxonomy.is_empty() and present:
            dimension_matches = await self._match_all(
                present, taxonomy.dimensions, strategy or KeywordMatchStrategy()
            )

        graph = _GraphAccumulator()
        for index, unit in present:
            strategy_id = graph.add_node(
                f"{NodeType.STRATEGY.value}-{index}",
                self.strategy_label(unit.text, index),
                NodeType.STRATEGY,
            )

            for node_type, raw, relation in (
                (NodeType.DEPENDENCY, unit.tags.dependency, Relation.ADDRESSES),
                (NodeType.REFERENCE, unit.tags.reference, Relation.REFERENCES),
            ):
                for token in split_tag_values(raw):
                    target = graph.add_node(
                        f"{node_type.value}-{normalize_label(token)}", token, node_type
                    )
                    graph.add_edge(strategy_id, target, relation)

            for dim in dimension_matches.get(index, []):
                target = graph.add_node(
                    f"{NodeType.DIMENSION.value}-{dim.id}", dim.name, NodeType.DIMENSION
                )
                graph.add_edge(strategy_id, target, Relation.ALIGNED_WITH)

        result = graph.to_graph()
        elapsed_ms = (time.perf_counter_ns() - start) // 1_000_000
        logger.info(
            f"Built graph: {len(result.nodes)} nodes, {len(result.edges)} edges "
            f"from {len(present)} units in {elapsed_ms}ms"
        )
        return result
