"""
Public API

Modules:
    service: ProRAG facade (build, query, chat, graph, store management)
"""

from prorag.api.service import ProRAG

__all__ = ["ProRAG"]
