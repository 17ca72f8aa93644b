"""
Query Context Assembler

Routes typed query fields into dependency / reference / strategy buckets
and builds the canonical retrieval text.

Routing:
    1. Field groups, in declaration order, by role
    2. Custom fields as "{name}: {value}", by role
    3. Unrouted fields (unknown role) follow the configured policy:
       "log" warns and skips, "reject" raises ValidationError

Retrieval text (embedded and searched; section order is fixed):

    User Dependencies: ...
    User References: ...
    User Strategies: ...
    Additional Info: ...

    User's question: ...
"""

from __future__ import annotations

import logging

from prorag.errors import ValidationError
from prorag.types import AssembledQuery, QueryContext, Role

logger = logging.getLogger(__name__)

CHAIN_OF_THOUGHT_MARKER = "[Chain of Thought Mode]"

UNROUTED_LOG = "log"
UNROUTED_REJECT = "reject"


def build_combined_query(
    dep_texts: list[str],
    ref_texts: list[str],
    str_texts: list[str],
    additional_text: str,
    user_query: str,
    *,
    chain_of_thought: bool = False,
) -> str:
    """Render the canonical retrieval text."""
    text = (
        f"User Dependencies: {', '.join(dep_texts)}\n"
        f"User References: {', '.join(ref_texts)}\n"
        f"User Strategies: {', '.join(str_texts)}\n"
        f"Additional Info: {additional_text}\n"
        f"\n"
        f"User's question: {user_query}"
    ).strip()
    if chain_of_thought:
        return f"{CHAIN_OF_THOUGHT_MARKER}\n\n{text}"
    return text


class QueryContextAssembler:
    """
    Assembles a QueryContext into an AssembledQuery.

    Args:
        unrouted_field_policy: "log" (default) or "reject"
    """

    def __init__(self, unrouted_field_policy: str = UNROUTED_LOG) -> None:
        if unrouted_field_policy not in (UNROUTED_LOG, UNROUTED_REJECT):
            raise ValueError(f"Unknown unrouted field policy: {unrouted_field_policy}")
        self._policy = unrouted_field_policy

    def _unrouted(self, name: str, declared_role: str, unrouted: list[str]) -> None:
        if self._policy == UNROUTED_REJECT:
            raise ValidationError(
                f"Query field '{name}' has unknown role '{declared_role}'. "
                f"Expected one of: {', '.join(r.value for r in Role)}"
            )
        logger.warning(f"Skipping query field '{name}' with unknown role '{declared_role}'")
        unrouted.append(name)

    def assemble(
        self,
        query_context: QueryContext | None,
        user_query: str = "",
        *,
        chain_of_thought: bool = False,
    ) -> AssembledQuery:
        """
        Route fields into buckets and build the retrieval text.

        Args:
            query_context: Typed fields, additional text and custom fields
            user_query: The user's free-text question
            chain_of_thought: Prefix the retrieval text with the CoT marker

        Raises:
            ValidationError: If a field has an unknown role and the policy is "reject"
        """
        query_context = query_context or QueryContext()
        buckets: dict[Role, list[str]] = {role: [] for role in Role}
        unrouted: list[str] = []

        for name, field in query_context.field_groups.items():
            if field.role is None:
                self._unrouted(name, field.declared_role, unrouted)
                continue
            buckets[field.role].extend(field.values)

        for custom in query_context.custom_fields:
            if custom.role is None:
                self._unrouted(custom.name, custom.declared_role, unrouted)
                continue
            buckets[custom.role].append(f"{custom.name}: {custom.value}")

        additional_text = query_context.additional_text or ""
        dep_texts = buckets[Role.DEPENDENCY]
        ref_texts = buckets[Role.REFERENCE]
        str_texts = buckets[Role.STRATEGY]

        return AssembledQuery(
            dep_texts=dep_texts,
            ref_texts=ref_texts,
            str_texts=str_texts,
            additional_text=additional_text,
            user_query=user_query,
            combined_query_text=build_combined_query(
                dep_texts,
                ref_texts,
                str_texts,
                additional_text,
                user_query,
                chain_of_thought=chain_of_thought,
            ),
            unrouted_fields=unrouted,
        )
