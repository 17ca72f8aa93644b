"""
Result Types

Response models returned across the ProRAG boundary.

Models:
    - RetrievedUnit: A content unit with its similarity score and rank
    - BuildResult: Outcome of building a store
    - PromptMode: Standard or chain-of-thought prompting
    - QueryResult: Answer, prompt used, and retrieved units
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from prorag.types.query import AssembledQuery
from prorag.types.units import ContentUnit


class RetrievedUnit(BaseModel):
    """
    A unit returned by similarity search.

    Attributes:
        unit: The content unit
        score: Cosine similarity to the query text, in [-1, 1]
        rank: 0-based position in the result list
    """

    unit: ContentUnit
    score: float = Field(default=0.0, ge=-1.0, le=1.0)
    rank: int = 0


class BuildResult(BaseModel):
    """Outcome of building (or rebuilding) a store."""

    store_key: str
    unit_count: int
    embedding_model: str = ""
    duration_ms: int = 0


class PromptMode(str, Enum):
    """
    Prompt template variant.

    STANDARD: concise ordered-list answer
    CHAIN_OF_THOUGHT: step-by-step analysis before the final answer
    """

    STANDARD = "standard"
    CHAIN_OF_THOUGHT = "chain_of_thought"


class QueryResult(BaseModel):
    """
    Full result of a query. Either complete or not returned at all.

    Attributes:
        store_key: Store that was searched
        answer: LLM answer text
        used_prompt: Exact prompt sent to the LLM
        retrieved_units: Units used as context, best first
        context: Assembled typed query (None for document chat)
        language: Requested answer language code
        mode: Prompt template variant
        timing: Phase name -> milliseconds
    """

    store_key: str
    answer: str
    used_prompt: str
    retrieved_units: list[RetrievedUnit] = Field(default_factory=list)
    context: AssembledQuery | None = None
    language: str = "en"
    mode: PromptMode = PromptMode.STANDARD
    timing: dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(use_enum_values=True)

    @property
    def units(self) -> list[ContentUnit]:
        """Retrieved content units without scores."""
        return [r.unit for r in self.retrieved_units]
