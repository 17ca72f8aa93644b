"""
ProRAGConfig - Configuration Management

Sensible defaults with full override capability.

Example:
    >>> # Use defaults (reads from environment)
    >>> rag = ProRAG()

    >>> # Explicit configuration
    >>> config = ProRAGConfig(
    ...     llm_model="gpt-4o",
    ...     graph_match_strategy="semantic",
    ... )
    >>> rag = ProRAG(config=config)

    >>> # From config file
    >>> config = ProRAGConfig.from_file("./prorag.toml")

Environment Variables:
    OPENAI_API_KEY - OpenAI API key (standard name)
    PRORAG_LLM_PROVIDER - LLM provider name
    PRORAG_LLM_MODEL - Model for answer generation (falls back to OPENAI_MODEL)
    PRORAG_EMBEDDING_PROVIDER - Embedding provider name
    PRORAG_EMBEDDING_MODEL - Embedding model name
    PRORAG_TOP_K - Default number of units retrieved per query
    PRORAG_TAXONOMY_DIR - Directory of additional taxonomy JSON files
    PRORAG_SEMANTIC_THRESHOLD - Similarity threshold for semantic dimension matching
    PRORAG_UNROUTED_FIELDS - "log" or "reject" for query fields with unknown roles
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, cast


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return cast(dict[str, Any], tomllib.load(f))


UNROUTED_FIELD_POLICIES = ("log", "reject")
MATCH_STRATEGIES = ("keyword", "semantic")


class ProRAGConfig:
    """Configuration for ProRAG."""

    # === LLM Configuration ===

    llm_provider: str = "openai"
    """LLM provider: "openai" """

    llm_model: str = "gpt-4o-mini"
    """Model for answer generation"""

    llm_temperature: float = 0.0
    """Sampling temperature for answer generation"""

    llm_max_tokens: int = 4096
    """Maximum tokens in a generated answer"""

    # === Embedding Configuration ===

    embedding_provider: str = "openai"
    """Embedding provider: "openai" """

    embedding_model: str = "text-embedding-3-small"
    """Embedding model name"""

    embedding_batch_size: int = 100
    """Texts per embedding API call when building a store"""

    # === API Keys ===

    openai_api_key: str | None = None

    # === Retrieval Configuration ===

    retrieval_top_k: int = 10
    """Default number of units retrieved per structured query"""

    chat_top_k: int = 4
    """Default number of chunks retrieved for document chat"""

    unrouted_field_policy: str = "log"
    """What to do with query fields whose role is unknown: "log" or "reject" """

    default_language: str = "en"
    """Answer language when the caller does not specify one"""

    # === Graph Configuration ===

    graph_match_strategy: str = "keyword"
    """Dimension matching: "keyword" or "semantic" """

    graph_semantic_threshold: float = 0.78
    """Minimum cosine similarity for a semantic dimension match"""

    graph_label_length: int = 80
    """Characters of unit text used as a strategy node label"""

    taxonomy_dir: str | None = None
    """Directory of additional taxonomy JSON files ({name}.json)"""

    # === Timeouts ===

    embedding_timeout_seconds: float | None = 30.0
    """Deadline for each embedding call (None disables)"""

    llm_timeout_seconds: float | None = 120.0
    """Deadline for each LLM call (None disables)"""

    # === Document Chunking ===

    document_max_paragraphs: int = 6
    """Paragraph threshold for splitting long document sections"""

    document_min_chunk_chars: int = 50
    """Document chunks shorter than this are dropped"""

    document_max_chunk_chars: int | None = 500
    """Document chunks longer than this are split (None disables the cap)"""

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize configuration.

        Args:
            **kwargs: Override any configuration option

        Raises:
            ValueError: On unknown options or invalid values
        """
        # Load from environment first
        self._load_from_env()

        # Apply explicit overrides
        for key, value in kwargs.items():
            if hasattr(self, key) and not key.startswith("_"):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

        self._validate()

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        import os

        self.openai_api_key = os.getenv("OPENAI_API_KEY")

        if provider := os.getenv("PRORAG_LLM_PROVIDER"):
            self.llm_provider = provider
        if model := os.getenv("PRORAG_LLM_MODEL") or os.getenv("OPENAI_MODEL"):
            self.llm_model = model
        if provider := os.getenv("PRORAG_EMBEDDING_PROVIDER"):
            self.embedding_provider = provider
        if model := os.getenv("PRORAG_EMBEDDING_MODEL"):
            self.embedding_model = model
        if top_k := os.getenv("PRORAG_TOP_K"):
            self.retrieval_top_k = int(top_k)
        if taxonomy_dir := os.getenv("PRORAG_TAXONOMY_DIR"):
            self.taxonomy_dir = taxonomy_dir
        if threshold := os.getenv("PRORAG_SEMANTIC_THRESHOLD"):
            self.graph_semantic_threshold = float(threshold)
        if policy := os.getenv("PRORAG_UNROUTED_FIELDS"):
            self.unrouted_field_policy = policy

    def _validate(self) -> None:
        if self.unrouted_field_policy not in UNROUTED_FIELD_POLICIES:
            raise ValueError(
                f"unrouted_field_policy must be one of {UNROUTED_FIELD_POLICIES}, "
                f"got {self.unrouted_field_policy!r}"
            )
        if self.graph_match_strategy not in MATCH_STRATEGIES:
            raise ValueError(
                f"graph_match_strategy must be one of {MATCH_STRATEGIES}, "
                f"got {self.graph_match_strategy!r}"
            )
        if not -1.0 <= self.graph_semantic_threshold <= 1.0:
            raise ValueError("graph_semantic_threshold must be within [-1, 1]")
        for name in ("retrieval_top_k", "chat_top_k", "embedding_batch_size", "graph_label_length"):
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be a positive integer")

        # 0 (as written by to_file) means disabled
        for name in ("embedding_timeout_seconds", "llm_timeout_seconds", "document_max_chunk_chars"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                setattr(self, name, None)

    @classmethod
    def from_file(cls, path: str | Path) -> "ProRAGConfig":
        """
        Load configuration from TOML file.

        Nested sections are flattened into option names.

        Example TOML:
            [llm]
            model = "gpt-4o"

            [retrieval]
            top_k = 8

            [graph]
            match_strategy = "semantic"
            semantic_threshold = 0.8

            [api_keys]
            openai = "sk-..."

        Raises:
            FileNotFoundError: If config file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        data = _load_toml(path)

        flat_config: dict[str, Any] = {}

        # Map section names to config key prefixes
        section_mapping = {
            "llm": "llm_",
            "embedding": "embedding_",
            "api_keys": "",  # api_keys.openai -> openai_api_key
            "retrieval": "",
            "graph": "graph_",
            "timeouts": "",
            "documents": "document_",
        }
        # Keys inside [retrieval] that do not share a prefix
        retrieval_keys = {"top_k": "retrieval_top_k"}

        for section, prefix in section_mapping.items():
            if section not in data:
                continue
            for key, value in data[section].items():
                if section == "api_keys":
                    flat_config[f"{key}_api_key"] = value
                elif section == "retrieval":
                    flat_config[retrieval_keys.get(key, key)] = value
                elif section == "graph" and key == "taxonomy_dir":
                    flat_config["taxonomy_dir"] = value
                else:
                    flat_config[f"{prefix}{key}"] = value

        # Also support flat top-level keys
        for key, value in data.items():
            if key not in section_mapping and not isinstance(value, dict):
                flat_config[key] = value

        return cls(**flat_config)

    @classmethod
    def from_env(cls) -> "ProRAGConfig":
        """Load configuration from environment variables only."""
        return cls()

    def to_file(self, path: str | Path) -> None:
        """
        Save configuration to TOML file.

        API keys are excluded.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        sections: dict[str, dict[str, str | int | float | bool | None]] = {
            "llm": {
                "provider": self.llm_provider,
                "model": self.llm_model,
                "temperature": self.llm_temperature,
                "max_tokens": self.llm_max_tokens,
            },
            "embedding": {
                "provider": self.embedding_provider,
                "model": self.embedding_model,
                "batch_size": self.embedding_batch_size,
            },
            "retrieval": {
                "top_k": self.retrieval_top_k,
                "chat_top_k": self.chat_top_k,
                "unrouted_field_policy": self.unrouted_field_policy,
                "default_language": self.default_language,
            },
            "graph": {
                "match_strategy": self.graph_match_strategy,
                "semantic_threshold": self.graph_semantic_threshold,
                "label_length": self.graph_label_length,
                "taxonomy_dir": self.taxonomy_dir,
            },
            "timeouts": {
                # 0 disables a deadline
                "embedding_timeout_seconds": self.embedding_timeout_seconds or 0,
                "llm_timeout_seconds": self.llm_timeout_seconds or 0,
            },
            "documents": {
                "max_paragraphs": self.document_max_paragraphs,
                "min_chunk_chars": self.document_min_chunk_chars,
                "max_chunk_chars": self.document_max_chunk_chars or 0,
            },
        }

        # Build TOML string manually; None values are omitted
        lines = ["# ProRAG Configuration", ""]

        for section_name, section_values in sections.items():
            lines.append(f"[{section_name}]")
            for key, value in section_values.items():
                if isinstance(value, str):
                    lines.append(f'{key} = "{value}"')
                elif isinstance(value, bool):
                    lines.append(f"{key} = {str(value).lower()}")
                elif isinstance(value, (int, float)):
                    lines.append(f"{key} = {value}")
            lines.append("")

        lines.extend([
            "# API keys should be set via environment variables:",
            "# OPENAI_API_KEY",
            "",
        ])

        path.write_text("\n".join(lines))

    def with_overrides(self, **kwargs: Any) -> "ProRAGConfig":
        """Return new config with specified overrides."""
        new_config = ProRAGConfig.__new__(ProRAGConfig)
        for key in dir(self):
            if not key.startswith("_") and not callable(getattr(self, key)):
                setattr(new_config, key, getattr(self, key))
        for key, value in kwargs.items():
            if not hasattr(new_config, key):
                raise ValueError(f"Unknown configuration option: {key}")
            setattr(new_config, key, value)
        new_config._validate()
        return new_config
