"""
Configuration System

Manages configuration for ProRAG with a layered approach.

Configuration Priority (highest to lowest):
    1. Programmatic (passed to ProRAGConfig())
    2. Environment variables (PRORAG_* prefix, OPENAI_API_KEY)
    3. Config file (ProRAGConfig.from_file)
    4. Built-in defaults

Modules:
    settings: ProRAGConfig class
"""

from prorag.config.settings import ProRAGConfig

__all__ = ["ProRAGConfig"]
