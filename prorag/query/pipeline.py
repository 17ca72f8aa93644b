"""
ProRAG Query Pipeline

Orchestrates a structured query:
    1. Assembly: Route typed fields and build the retrieval text
    2. Retrieval: Top-K cosine search over the store
    3. Prompt: Render units and context into the answer prompt
    4. Generation: One LLM call under a deadline

A query either returns a complete QueryResult or raises; there are no
partial results. Zero retrieved units is not an error: the prompt tells
the model to answer "No more info available."
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from prorag.errors import GenerationError, OperationTimeoutError
from prorag.query.context import QueryContextAssembler
from prorag.query.prompts import build_chat_prompt, build_from_context
from prorag.types import PromptMode, QueryContext, QueryResult, RetrievedUnit
from prorag.utils.deadline import run_with_deadline

if TYPE_CHECKING:
    from prorag.config.settings import ProRAGConfig
    from prorag.providers.base import LLMProvider
    from prorag.retrieval.retriever import Retriever

logger = logging.getLogger(__name__)


def _elapsed_ms(start: int) -> int:
    return (time.perf_counter_ns() - start) // 1_000_000


class ProRAGPipeline:
    """
    Retrieval -> prompt -> LLM orchestration.

    Args:
        retriever: Store-keyed top-K search
        llm: Answer generator
        config: Optional configuration (timeouts, temperature, defaults)
    """

    def __init__(
        self,
        retriever: "Retriever",
        llm: "LLMProvider",
        config: "ProRAGConfig | None" = None,
    ) -> None:
        self.retriever = retriever
        self.llm = llm
        self.config = config

        self.assembler = QueryContextAssembler(
            config.unrouted_field_policy if config else "log"
        )
        self._llm_timeout = config.llm_timeout_seconds if config else 120.0
        self._temperature = config.llm_temperature if config else 0.0
        self._max_tokens = config.llm_max_tokens if config else 4096
        self._chat_top_k = config.chat_top_k if config else 4

    async def _generate(self, prompt: str) -> str:
        """
        Run the LLM under the configured deadline.

        Raises:
            GenerationError: If the LLM call fails
            OperationTimeoutError: If the deadline passes first
        """
        try:
            return await run_with_deadline(
                self.llm.generate(
                    prompt,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                ),
                self._llm_timeout,
                operation="answer generation",
            )
        except OperationTimeoutError:
            logger.error(f"LLM generation timed out after {self._llm_timeout}s")
            raise
        except Exception as exc:
            logger.error(f"LLM generation failed: {exc}")
            raise GenerationError(f"LLM generation failed: {exc}") from exc

    async def query(
        self,
        store_key: str,
        query_context: QueryContext | None,
        user_query: str,
        language: str = "en",
        k: int | None = None,
        *,
        mode: PromptMode | str = PromptMode.STANDARD,
    ) -> QueryResult:
        """
        Execute a structured query against a store.

        Args:
            store_key: Store to search
            query_context: Typed fields, additional text and custom fields
            user_query: The user's question
            language: Answer language code
            k: Units to retrieve (None uses the retriever default)
            mode: Standard or chain-of-thought prompting

        Raises:
            StoreNotFoundError: If no store exists for the key
            ValidationError: If a field is rejected by the unrouted policy
            RetrievalError, GenerationError, OperationTimeoutError
        """
        mode = PromptMode(mode)
        timing: dict[str, int] = {}

        # Phase 1: Assembly
        start = time.perf_counter_ns()
        assembled = self.assembler.assemble(
            query_context,
            user_query,
            chain_of_thought=mode is PromptMode.CHAIN_OF_THOUGHT,
        )
        timing["assembly"] = _elapsed_ms(start)

        # Phase 2: Retrieval
        start = time.perf_counter_ns()
        retrieved = await self.retriever.retrieve(store_key, assembled.combined_query_text, k)
        timing["retrieval"] = _elapsed_ms(start)

        # Phase 3: Prompt
        prompt = build_from_context(retrieved, assembled, language, mode)

        # Phase 4: Generation
        start = time.perf_counter_ns()
        answer = await self._generate(prompt)
        timing["generation"] = _elapsed_ms(start)

        logger.info(
            f"Query on '{store_key}' ({mode.value}): {len(retrieved)} units, "
            f"retrieval {timing['retrieval']}ms, generation {timing['generation']}ms"
        )

        return QueryResult(
            store_key=store_key,
            answer=answer,
            used_prompt=prompt,
            retrieved_units=retrieved,
            context=assembled,
            language=language,
            mode=mode,
            timing=timing,
        )

    async def chat(
        self,
        store_key: str,
        question: str,
        k: int | None = None,
    ) -> QueryResult:
        """
        Quick question answering over a document store.

        Raises:
            StoreNotFoundError: If no store exists for the key
        """
        timing: dict[str, int] = {}

        start = time.perf_counter_ns()
        retrieved: list[RetrievedUnit] = await self.retriever.retrieve(
            store_key, question, self._chat_top_k if k is None else k
        )
        timing["retrieval"] = _elapsed_ms(start)

        prompt = build_chat_prompt(retrieved, question)

        start = time.perf_counter_ns()
        answer = await self._generate(prompt)
        timing["generation"] = _elapsed_ms(start)

        logger.info(f"Chat on '{store_key}': {len(retrieved)} chunks, {timing['generation']}ms")

        return QueryResult(
            store_key=store_key,
            answer=answer,
            used_prompt=prompt,
            retrieved_units=retrieved,
            context=None,
            timing=timing,
        )
