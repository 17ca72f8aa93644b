"""Shared fixtures: deterministic providers and sample tables."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from prorag.types import ColumnRoleMap
from tests.fakes import EchoLLMProvider, FakeEmbeddingProvider


@pytest.fixture
def fake_embeddings() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def echo_llm() -> EchoLLMProvider:
    return EchoLLMProvider()


@pytest.fixture
def mock_llm() -> MagicMock:
    """Create a mock LLM provider."""
    llm = MagicMock()
    llm.generate = AsyncMock(return_value="Generated text")
    llm.model_name = "test-model"
    return llm


@pytest.fixture
def column_map() -> ColumnRoleMap:
    return ColumnRoleMap(
        dependency_cols=["Risk"],
        strategy_cols=["Strategy"],
        reference_cols=["Code"],
    )


@pytest.fixture
def sample_rows() -> list[dict]:
    return [
        {"Risk": "Flooding", "Strategy": "Elevate structures above flood level", "Code": "FEMA P-55"},
        {"Risk": "Extreme Heat", "Strategy": "Add shade trees and a cool roof", "Code": "ASHRAE 90.1"},
        {"Risk": "Flooding, Stormwater", "Strategy": "Improve site drainage for water", "Code": "Local code"},
    ]
