"""
ProRAG - Structured Retrieval and Relationship Graphs

Retrieval-augmented answering over tabular design knowledge bases: rows
become content units, typed multi-field queries retrieve the closest units,
an LLM composes the answer, and retrieved units can be materialized into a
relationship graph aligned with a design-excellence taxonomy.

Example:
    >>> from prorag import ProRAG
    >>> rag = ProRAG()
    >>> await rag.build_store_from_file("strategies", "strategies.csv", column_map)
    >>> result = await rag.query("strategies", payload, "How do we handle flooding?")
    >>> print(result.answer)
    >>> graph = await rag.build_graph(result.retrieved_units, "AIA")

Main Classes:
    ProRAG: Primary entry point for all operations
    ProRAGConfig: Configuration management
"""

__version__ = "0.1.0"

# Public API - lazy imports to avoid loading optional dependencies
def __getattr__(name: str):
    """Lazy import public API components."""

    if name == "ProRAG":
        from prorag.api.service import ProRAG
        return ProRAG

    if name == "ProRAGConfig":
        from prorag.config.settings import ProRAGConfig
        return ProRAGConfig

    # Types
    if name in (
        "ContentUnit",
        "ColumnRoleMap",
        "QueryContext",
        "QueryResult",
        "GraphData",
        "PromptMode",
        "Role",
    ):
        from prorag import types
        return getattr(types, name)

    raise AttributeError(f"module 'prorag' has no attribute {name!r}")


__all__ = [
    # Main classes
    "ProRAG",
    "ProRAGConfig",

    # Types
    "ContentUnit",
    "ColumnRoleMap",
    "QueryContext",
    "QueryResult",
    "GraphData",
    "PromptMode",
    "Role",

    # Version
    "__version__",
]
