"""Tests for the ProRAG query pipeline."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from prorag.config import ProRAGConfig
from prorag.errors import GenerationError, OperationTimeoutError, StoreNotFoundError
from prorag.query import NO_INFO_PHRASE, ProRAGPipeline
from prorag.retrieval import EmbeddingIndex, Retriever
from prorag.storage import InMemoryStoreRepository
from prorag.types import ContentUnit, PromptMode, QueryContext, QueryField, Role, UnitTags


@pytest.fixture
def units() -> list[ContentUnit]:
    return [
        ContentUnit(
            id="designs_row_0000",
            text="Elevate structures above flood level",
            tags=UnitTags(dependency="Flooding", reference="FEMA P-55"),
        ),
        ContentUnit(
            id="designs_row_0001",
            text="Add shade trees and a cool roof",
            tags=UnitTags(dependency="Extreme Heat", reference="ASHRAE 90.1"),
        ),
    ]


@pytest.fixture
def index(fake_embeddings) -> EmbeddingIndex:
    return EmbeddingIndex(fake_embeddings, InMemoryStoreRepository())


@pytest.fixture
def flood_context() -> QueryContext:
    return QueryContext(
        field_groups={"climateRisks": QueryField(values=["Flooding"], role=Role.DEPENDENCY)}
    )


class TestQuery:
    """Test structured queries."""

    @pytest.mark.asyncio
    async def test_result_fields(self, index, units, echo_llm, flood_context):
        await index.build_index("designs", units)
        pipeline = ProRAGPipeline(Retriever(index), echo_llm)

        result = await pipeline.query("designs", flood_context, "How do I handle flood water?")

        assert result.store_key == "designs"
        assert result.answer == echo_llm.answer
        assert result.used_prompt == echo_llm.prompts[0]
        assert result.retrieved_units[0].unit.id == "designs_row_0000"
        assert result.context.dep_texts == ["Flooding"]
        assert result.mode == "standard"
        assert set(result.timing) == {"assembly", "retrieval", "generation"}

    @pytest.mark.asyncio
    async def test_prompt_lists_units_best_first(self, index, units, echo_llm, flood_context):
        await index.build_index("designs", units)
        pipeline = ProRAGPipeline(Retriever(index), echo_llm)

        result = await pipeline.query("designs", flood_context, "flood water", k=2)

        prompt = result.used_prompt
        assert prompt.index("Elevate structures") < prompt.index("Add shade trees")
        assert "Dependency: Flooding" in prompt
        assert "- Dependencies: Flooding" in prompt

    @pytest.mark.asyncio
    async def test_k_limits_units(self, index, units, echo_llm):
        await index.build_index("designs", units)
        pipeline = ProRAGPipeline(Retriever(index), echo_llm)

        result = await pipeline.query("designs", None, "flood", k=1)

        assert len(result.retrieved_units) == 1
        assert "---- Document #2 ----" not in result.used_prompt

    @pytest.mark.asyncio
    async def test_language_directive(self, index, units, echo_llm):
        await index.build_index("designs", units)
        pipeline = ProRAGPipeline(Retriever(index), echo_llm)

        result = await pipeline.query("designs", None, "flood", language="zh")

        assert result.language == "zh"
        assert "You must answer in Chinese" in result.used_prompt

    @pytest.mark.asyncio
    async def test_chain_of_thought(self, index, units, echo_llm, fake_embeddings):
        await index.build_index("designs", units)
        pipeline = ProRAGPipeline(Retriever(index), echo_llm)

        result = await pipeline.query("designs", None, "flood", mode=PromptMode.CHAIN_OF_THOUGHT)

        assert result.mode == "chain_of_thought"
        assert result.context.combined_query_text.startswith("[Chain of Thought Mode]\n\n")
        assert "=== Chain of Thought ===" in result.used_prompt
        assert fake_embeddings.single_calls[-1] == result.context.combined_query_text

    @pytest.mark.asyncio
    async def test_empty_store_still_answers(self, index, echo_llm):
        await index.build_index("empty", [])
        pipeline = ProRAGPipeline(Retriever(index), echo_llm)

        result = await pipeline.query("empty", None, "anything?")

        assert result.retrieved_units == []
        assert NO_INFO_PHRASE in result.used_prompt

    @pytest.mark.asyncio
    async def test_missing_store(self, index, mock_llm):
        pipeline = ProRAGPipeline(Retriever(index), mock_llm)

        with pytest.raises(StoreNotFoundError):
            await pipeline.query("missing", None, "q")
        mock_llm.generate.assert_not_called()


class TestGeneration:
    """Test LLM failure handling."""

    @pytest.mark.asyncio
    async def test_llm_failure_wrapped(self, index, units):
        await index.build_index("designs", units)
        llm = MagicMock()
        llm.generate = AsyncMock(side_effect=RuntimeError("rate limited"))
        pipeline = ProRAGPipeline(Retriever(index), llm)

        with pytest.raises(GenerationError, match="rate limited"):
            await pipeline.query("designs", None, "flood")

    @pytest.mark.asyncio
    async def test_llm_timeout(self, index, units):
        await index.build_index("designs", units)

        async def slow(*args, **kwargs):
            await asyncio.sleep(1)
            return "late"

        llm = MagicMock()
        llm.generate = AsyncMock(side_effect=slow)
        config = ProRAGConfig(llm_timeout_seconds=0.01)
        pipeline = ProRAGPipeline(Retriever(index), llm, config)

        with pytest.raises(OperationTimeoutError, match="answer generation timed out"):
            await pipeline.query("designs", None, "flood")

    @pytest.mark.asyncio
    async def test_config_passed_to_llm(self, index, units, mock_llm):
        await index.build_index("designs", units)
        config = ProRAGConfig(llm_temperature=0.3, llm_max_tokens=512)
        pipeline = ProRAGPipeline(Retriever(index), mock_llm, config)

        await pipeline.query("designs", None, "flood")

        kwargs = mock_llm.generate.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 512


class TestChat:
    """Test document chat."""

    @pytest.mark.asyncio
    async def test_chat(self, index, units, echo_llm):
        await index.build_index("doc", units)
        pipeline = ProRAGPipeline(Retriever(index), echo_llm)

        result = await pipeline.chat("doc", "What about shade and heat?")

        assert result.context is None
        assert result.retrieved_units[0].unit.id == "designs_row_0001"
        assert result.used_prompt.endswith("Question: What about shade and heat?\nHelpful Answer:")
        assert set(result.timing) == {"retrieval", "generation"}

    @pytest.mark.asyncio
    async def test_chat_default_k(self, index, echo_llm):
        units = [ContentUnit(id=f"c{i}", text=f"flood {i}") for i in range(6)]
        await index.build_index("doc", units)
        pipeline = ProRAGPipeline(Retriever(index), echo_llm)

        result = await pipeline.chat("doc", "flood")

        assert len(result.retrieved_units) == 4
