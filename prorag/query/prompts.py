"""
Prompt Assembly

Pure functions that turn retrieved units and typed context into the exact
prompt text sent to the LLM. No I/O.

Templates:
    - STANDARD: consultant answer as an ordered Markdown list
    - CHAIN_OF_THOUGHT: step-by-step analysis, reference summary, final answer
    - Document chat: short answer from context only
"""

from __future__ import annotations

from collections.abc import Sequence

from prorag.types import AssembledQuery, ContentUnit, PromptMode, RetrievedUnit

NO_INFO_PHRASE = "No more info available."

_LANGUAGE_DIRECTIVES = {
    "en": "You must answer in English.",
    "zh": "You must answer in Chinese 中文.",
    "es": "You must answer in Spanish Espanol.",
}

STANDARD_TEMPLATE = """You are a knowledgeable consultant in architecture, engineering, and design.
{language_directive}

The user has provided the following typed context:
{typed_context}

We found these relevant table chunks:
{documents}

Please note:
1) If the user explicitly asks for references, you must include every reference
   found in the chunks above (e.g., "References: ..."). Include them all.
2) Output your final answer in an ordered list (1., 2., 3., ...), in Markdown format.
3) If the user asks for a specific number of items, return exactly that many when
   the chunks support it. If fewer relevant items exist, return all that are
   available and do not pad or fabricate the rest.
If there's insufficient info, say "{no_info}"

User's question:
{user_query}"""

CHAIN_OF_THOUGHT_TEMPLATE = """You are an expert consultant.
We want to see a chain of thought:
   1) Analyze the context step by step
   2) Summarize the references
   3) Provide the final short answer

{language_directive}
Please respond in Markdown format.
If the user asks for a specific number of items, return that many when the context
supports it. If fewer exist, return all that are available and do not pad or fabricate.
If there's insufficient info, say "{no_info}"

The user has provided the following typed context:
{typed_context}

=== Documents / Context ===
{documents}

=== Chain of Thought ===
First, reason it out step by step. Then, produce the final answer.

User's question: {user_query}"""

CHAT_TEMPLATE = """Use the following pieces of context to answer the question at the end.
If you don't know the answer, just say "I don't know," don't try to make up an answer.
Use ten sentences maximum and keep the answer as concise as possible.

{context}
Question: {question}
Helpful Answer:"""


def language_directive(language: str | None) -> str:
    """
    Answer-language instruction.

    Known codes ("en", "zh", "es") map to fixed directives; anything else
    becomes "Answer in {language}.". Never raises.
    """
    if language in _LANGUAGE_DIRECTIVES:
        return _LANGUAGE_DIRECTIVES[language]
    return f"Answer in {language}."


def _as_unit(item: RetrievedUnit | ContentUnit) -> ContentUnit:
    return item.unit if isinstance(item, RetrievedUnit) else item


def render_documents(units: Sequence[RetrievedUnit | ContentUnit]) -> str:
    """Render units as numbered document blocks, in the given order."""
    blocks = []
    for idx, item in enumerate(units):
        unit = _as_unit(item)
        blocks.append(
            f"---- Document #{idx + 1} ----\n"
            f"Strategy:\n"
            f"{unit.text}\n"
            f"Dependency: {unit.tags.dependency}\n"
            f"Reference: {unit.tags.reference}"
        )
    return "\n\n".join(blocks)


def _typed_context(
    dep_texts: Sequence[str],
    ref_texts: Sequence[str],
    str_texts: Sequence[str],
    additional_text: str,
) -> str:
    return AssembledQuery(
        dep_texts=list(dep_texts),
        ref_texts=list(ref_texts),
        str_texts=list(str_texts),
        additional_text=additional_text,
    ).to_display_text()


def build_prompt(
    retrieved_units: Sequence[RetrievedUnit | ContentUnit],
    dep_texts: Sequence[str],
    ref_texts: Sequence[str],
    str_texts: Sequence[str],
    additional_text: str,
    user_query: str,
    language: str = "en",
    *,
    mode: PromptMode | str = PromptMode.STANDARD,
) -> str:
    """
    Build the answer prompt.

    Args:
        retrieved_units: Units in retrieval order (best first)
        dep_texts, ref_texts, str_texts: Routed typed context
        additional_text: Free-form extra context
        user_query: The user's question
        language: Answer language code
        mode: Template variant

    Returns:
        Prompt text; deterministic for identical inputs
    """
    template = (
        CHAIN_OF_THOUGHT_TEMPLATE
        if PromptMode(mode) is PromptMode.CHAIN_OF_THOUGHT
        else STANDARD_TEMPLATE
    )
    return template.format(
        language_directive=language_directive(language),
        typed_context=_typed_context(dep_texts, ref_texts, str_texts, additional_text or ""),
        documents=render_documents(retrieved_units),
        no_info=NO_INFO_PHRASE,
        user_query=user_query,
    )


def build_from_context(
    retrieved_units: Sequence[RetrievedUnit | ContentUnit],
    assembled: AssembledQuery,
    language: str = "en",
    mode: PromptMode | str = PromptMode.STANDARD,
) -> str:
    """Build the answer prompt from an assembled query."""
    return build_prompt(
        retrieved_units,
        assembled.dep_texts,
        assembled.ref_texts,
        assembled.str_texts,
        assembled.additional_text,
        assembled.user_query,
        language,
        mode=mode,
    )


def build_chat_prompt(
    retrieved_units: Sequence[RetrievedUnit | ContentUnit],
    question: str,
) -> str:
    """Build the document chat prompt."""
    context = "\n\n".join(_as_unit(item).text for item in retrieved_units)
    return CHAT_TEMPLATE.format(context=context, question=question)


class PromptAssembler:
    """
    Thin object wrapper over the prompt functions.

    Useful where a collaborator is injected; holds no state.
    """

    build_prompt = staticmethod(build_prompt)
    build_from_context = staticmethod(build_from_context)
    build_chat_prompt = staticmethod(build_chat_prompt)
    language_directive = staticmethod(language_directive)
