"""Tests for relationship graph building and dimension matching."""

import asyncio
import logging

import pytest

from prorag.graph import (
    DimensionEmbeddingCache,
    GraphBuilder,
    KeywordMatchStrategy,
    MatchStrategy,
    SemanticMatchStrategy,
)
from prorag.graph.taxonomy import AIA_DIMENSIONS
from prorag.types import (
    ContentUnit,
    DimensionDescriptor,
    GraphData,
    NodeType,
    Relation,
    RetrievedUnit,
    Taxonomy,
    UnitTags,
)
from tests.fakes import FakeEmbeddingProvider


def _unit(uid: str, text: str, dependency: str = "", reference: str = "") -> ContentUnit:
    return ContentUnit(id=uid, text=text, tags=UnitTags(dependency=dependency, reference=reference))


@pytest.fixture
def water_taxonomy() -> Taxonomy:
    return Taxonomy(
        name="test",
        dimensions=[DimensionDescriptor(id="water", name="Water", keywords=["flood"])],
    )


class TestGraphBuilder:
    """Test node and edge materialization."""

    @pytest.mark.asyncio
    async def test_comma_separated_dependencies(self):
        graph = await GraphBuilder().build([_unit("u0", "Raise grade", dependency="A, B")])

        deps = graph.nodes_of_type(NodeType.DEPENDENCY)
        assert sorted(n.label for n in deps) == ["A", "B"]
        addresses = graph.edges_of_relation(Relation.ADDRESSES)
        assert len(addresses) == 2
        assert {e.source for e in addresses} == {"strategy-0"}
        assert len(graph.nodes_of_type(NodeType.STRATEGY)) == 1
        assert graph.nodes_of_type(NodeType.REFERENCE) == []

    @pytest.mark.asyncio
    async def test_reference_edges(self):
        graph = await GraphBuilder().build([_unit("u0", "Raise grade", reference="FEMA, IBC")])

        refs = graph.edges_of_relation("references")
        assert {e.target for e in refs} == {"reference-fema", "reference-ibc"}

    @pytest.mark.asyncio
    async def test_shared_dependency_is_one_node(self):
        units = [
            _unit("u0", "Raise grade", dependency="Flooding"),
            _unit("u1", "Add levee", dependency="flooding"),
        ]
        graph = await GraphBuilder().build(units)

        deps = graph.nodes_of_type(NodeType.DEPENDENCY)
        assert len(deps) == 1
        assert deps[0].id == "dependency-flooding"
        assert deps[0].label == "Flooding"
        assert len(graph.edges_of_relation(Relation.ADDRESSES)) == 2

    @pytest.mark.asyncio
    async def test_duplicate_tokens_yield_one_edge(self):
        graph = await GraphBuilder().build([_unit("u0", "Raise grade", dependency="Flooding, flooding")])

        assert len(graph.edges) == 1

    @pytest.mark.asyncio
    async def test_rebuild_is_identical(self, sample_rows):
        units = [
            _unit(f"u{i}", r["Strategy"], dependency=r["Risk"], reference=r["Code"])
            for i, r in enumerate(sample_rows)
        ]
        builder = GraphBuilder()
        first = await builder.build(units)
        second = await builder.build(units)

        assert first == second
        ids = [n.id for n in first.nodes]
        assert len(ids) == len(set(ids))
        edge_keys = [(e.source, e.target, e.relation) for e in first.edges]
        assert len(edge_keys) == len(set(edge_keys))

    @pytest.mark.asyncio
    async def test_empty_input(self):
        builder = GraphBuilder()
        assert await builder.build([]) == GraphData()
        assert (await builder.build(None)).is_empty()

    @pytest.mark.asyncio
    async def test_none_units_skipped(self, caplog):
        units = [_unit("u0", "Raise grade"), None, _unit("u2", "Add shade")]
        with caplog.at_level(logging.WARNING, logger="prorag.graph.builder"):
            graph = await GraphBuilder().build(units)

        ids = [n.id for n in graph.nodes_of_type(NodeType.STRATEGY)]
        assert ids == ["strategy-0", "strategy-2"]
        assert "Skipping missing unit at position 1" in caplog.text

    @pytest.mark.asyncio
    async def test_accepts_retrieved_units(self):
        retrieved = [RetrievedUnit(unit=_unit("u0", "Raise grade", dependency="Flooding"), score=0.5)]
        graph = await GraphBuilder().build(retrieved)

        assert len(graph.nodes) == 2

    @pytest.mark.asyncio
    async def test_no_taxonomy_means_no_dimensions(self):
        graph = await GraphBuilder().build([_unit("u0", "Flood-resistant design")], None)

        assert graph.nodes_of_type(NodeType.DIMENSION) == []
        assert graph.edges_of_relation(Relation.ALIGNED_WITH) == []


class TestStrategyLabel:
    """Test strategy node labels."""

    def test_truncated(self):
        label = GraphBuilder(label_length=80).strategy_label("x" * 120, 0)
        assert label == "x" * 80

    def test_newlines_collapsed(self):
        assert GraphBuilder().strategy_label("Raise\ngrade\r\nfirst", 0) == "Raise grade first"

    def test_blank_text_falls_back(self):
        builder = GraphBuilder()
        assert builder.strategy_label("", 0) == "Strategy #1"
        assert builder.strategy_label("  \n ", 4) == "Strategy #5"

    @pytest.mark.asyncio
    async def test_label_on_node(self):
        graph = await GraphBuilder(label_length=5).build([_unit("u0", "Raise grade")])
        assert graph.nodes[0].label == "Raise"


class TestKeywordMatching:
    """Test keyword dimension alignment."""

    @pytest.mark.asyncio
    async def test_flood_keyword_aligns(self, water_taxonomy):
        graph = await GraphBuilder().build([_unit("u0", "Flood-resistant design")], water_taxonomy)

        aligned = graph.edges_of_relation(Relation.ALIGNED_WITH)
        assert len(aligned) == 1
        assert aligned[0].source == "strategy-0"
        assert aligned[0].target == "dimension-water"
        dims = graph.nodes_of_type(NodeType.DIMENSION)
        assert [d.label for d in dims] == ["Water"]

    @pytest.mark.asyncio
    async def test_case_insensitive_substring(self):
        dims = await KeywordMatchStrategy().match("INTEGRATED systems", AIA_DIMENSIONS)
        assert [d.id for d in dims] == ["designForIntegration"]

    @pytest.mark.asyncio
    async def test_blank_keywords_ignored(self):
        dim = DimensionDescriptor(id="d", name="D", keywords=["", "  "])
        assert await KeywordMatchStrategy().match("anything", [dim]) == []

    @pytest.mark.asyncio
    async def test_aia_multiple_dimensions(self):
        dims = await KeywordMatchStrategy().match(
            "Stormwater design within budget", AIA_DIMENSIONS
        )
        assert [d.id for d in dims] == ["designForWater", "designForEconomy"]


class TestSemanticMatching:
    """Test embedding-based dimension alignment."""

    @pytest.mark.asyncio
    async def test_dissimilar_embeddings_produce_no_edges(self, water_taxonomy):
        strategy = SemanticMatchStrategy(FakeEmbeddingProvider(), threshold=0.99)
        graph = await GraphBuilder().build(
            [_unit("u0", "Flood-resistant design")], water_taxonomy, strategy=strategy
        )

        assert graph.edges_of_relation(Relation.ALIGNED_WITH) == []

    @pytest.mark.asyncio
    async def test_threshold_is_monotonic(self):
        dim = DimensionDescriptor(id="d", name="Dim")
        embeddings = FakeEmbeddingProvider(
            vectors={
                "Raise grade": [1.0] + [0.0] * 9,
                dim.embedding_text(): [0.8, 0.6] + [0.0] * 8,
            }
        )

        loose = SemanticMatchStrategy(embeddings, threshold=0.7)
        strict = SemanticMatchStrategy(embeddings, threshold=0.9)

        assert await loose.match("Raise grade", [dim]) == [dim]
        assert await strict.match("Raise grade", [dim]) == []

    @pytest.mark.asyncio
    async def test_blank_text_not_embedded(self, fake_embeddings):
        strategy = SemanticMatchStrategy(fake_embeddings)
        assert await strategy.match("   ", AIA_DIMENSIONS) == []
        assert fake_embeddings.single_calls == []

    @pytest.mark.asyncio
    async def test_zero_vector_scores_zero(self):
        dim = DimensionDescriptor(id="d", name="Water")
        strategy = SemanticMatchStrategy(FakeEmbeddingProvider(), threshold=0.0)
        # "Raise grade" has no vocabulary words and embeds as a zero vector
        assert await strategy.match("Raise grade", [dim]) == [dim]
        strict = SemanticMatchStrategy(FakeEmbeddingProvider(), threshold=0.1)
        assert await strict.match("Raise grade", [dim]) == []

    @pytest.mark.asyncio
    async def test_dimension_embedded_once(self, fake_embeddings):
        dim = DimensionDescriptor(id="water", name="Water", description="flood water")
        strategy = SemanticMatchStrategy(fake_embeddings, threshold=0.5)
        units = [_unit(f"u{i}", f"flood water {i}") for i in range(5)]

        graph = await GraphBuilder().build(units, Taxonomy(dimensions=[dim]), strategy=strategy)

        assert fake_embeddings.single_calls.count(dim.embedding_text()) == 1
        assert len(graph.edges_of_relation(Relation.ALIGNED_WITH)) == 5
        assert "water" in strategy.cache


class TestDimensionEmbeddingCache:
    """Test the per-id dimension embedding cache."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_call(self, fake_embeddings):
        cache = DimensionEmbeddingCache(fake_embeddings)
        dim = AIA_DIMENSIONS[1]

        vectors = await asyncio.gather(*(cache.get(dim) for _ in range(10)))

        assert len(fake_embeddings.single_calls) == 1
        assert all((v == vectors[0]).all() for v in vectors)
        assert len(cache) == 1

    def test_empty_cache_is_used(self, fake_embeddings):
        cache = DimensionEmbeddingCache(fake_embeddings)

        strategy = SemanticMatchStrategy(fake_embeddings, cache=cache)

        assert strategy.cache is cache

    @pytest.mark.asyncio
    async def test_clear(self, fake_embeddings):
        cache = DimensionEmbeddingCache(fake_embeddings)
        await cache.get(AIA_DIMENSIONS[0])
        cache.clear()

        assert len(cache) == 0
        await cache.get(AIA_DIMENSIONS[0])
        assert len(fake_embeddings.single_calls) == 2


class _FailingStrategy(MatchStrategy):
    """Raises for texts containing "boom", otherwise matches everything."""

    async def match(self, text, dimensions):
        if "boom" in text:
            raise RuntimeError("embedding service unavailable")
        return list(dimensions)


class TestMatchFailures:
    """A failed match drops alignment for that unit only."""

    @pytest.mark.asyncio
    async def test_failure_logged_and_graph_still_built(self, water_taxonomy, caplog):
        units = [_unit("u0", "boom"), _unit("u1", "Raise grade", dependency="Flooding")]
        with caplog.at_level(logging.WARNING, logger="prorag.graph.builder"):
            graph = await GraphBuilder().build(units, water_taxonomy, strategy=_FailingStrategy())

        aligned = graph.edges_of_relation(Relation.ALIGNED_WITH)
        assert [e.source for e in aligned] == ["strategy-1"]
        assert len(graph.nodes_of_type(NodeType.STRATEGY)) == 2
        assert "Dimension matching failed for unit 'u0'" in caplog.text
