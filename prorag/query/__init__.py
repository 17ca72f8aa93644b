"""
Query System

Modules:
    context: Typed field routing and the canonical retrieval text
    prompts: Pure prompt templates (standard, chain-of-thought, chat)
    pipeline: Retrieval -> prompt -> LLM orchestration

Example:
    >>> pipeline = ProRAGPipeline(retriever, llm)
    >>> result = await pipeline.query("designs", context, "How do I handle flooding?")
    >>> print(result.answer)
"""

from prorag.query.context import QueryContextAssembler, build_combined_query
from prorag.query.pipeline import ProRAGPipeline
from prorag.query.prompts import (
    NO_INFO_PHRASE,
    PromptAssembler,
    build_chat_prompt,
    build_from_context,
    build_prompt,
    language_directive,
)

__all__ = [
    "QueryContextAssembler",
    "build_combined_query",
    "ProRAGPipeline",
    "PromptAssembler",
    "NO_INFO_PHRASE",
    "build_prompt",
    "build_from_context",
    "build_chat_prompt",
    "language_directive",
]
