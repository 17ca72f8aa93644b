"""
ProRAG - Primary Entry Point

The ProRAG class owns the in-memory stores and exposes building, querying,
document chat and graph materialization.

A store is an immutable set of content units plus their embeddings, kept
under a caller-chosen store key. Rebuilding a key replaces its store;
builds for the same key are serialized, queries run concurrently.

Example:
    >>> rag = ProRAG()
    >>> await rag.build_store(
    ...     "resilience",
    ...     rows,
    ...     {"dependencyCol": ["Risk"], "strategyCol": ["Strategy"], "referenceCol": ["Code"]},
    ... )
    >>> result = await rag.query(
    ...     "resilience",
    ...     {"climateRisks": {"values": ["Flooding"], "type": "dependency"}},
    ...     "How should we protect the site?",
    ... )
    >>> print(result.answer)
    >>> graph = await rag.build_graph(result.retrieved_units, "AIA")

    # Or with sync API
    >>> rag.build_store_sync("resilience", rows, column_map)
    >>> result = rag.query_sync("resilience", context, "How should we protect the site?")
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from prorag.errors import StoreNotFoundError
from prorag.graph import (
    DimensionEmbeddingCache,
    GraphBuilder,
    KeywordMatchStrategy,
    MatchStrategy,
    SemanticMatchStrategy,
    TaxonomyLoader,
)
from prorag.ingestion import DocumentComposer, TableIngestor, read_document
from prorag.providers import create_embedding_provider, create_llm_provider
from prorag.query import ProRAGPipeline
from prorag.retrieval import EmbeddingIndex, Retriever
from prorag.storage import InMemoryStoreRepository
from prorag.types import (
    BuildResult,
    ColumnRoleMap,
    ContentUnit,
    CustomField,
    GraphData,
    PromptMode,
    QueryContext,
    QueryResult,
    RetrievedUnit,
)

if TYPE_CHECKING:
    from prorag.config.settings import ProRAGConfig
    from prorag.providers.base import EmbeddingProvider, LLMProvider
    from prorag.storage import StoreRepository, VectorStore

logger = logging.getLogger(__name__)


def _as_column_map(column_map: ColumnRoleMap | Mapping[str, Any]) -> ColumnRoleMap:
    if isinstance(column_map, ColumnRoleMap):
        return column_map
    return ColumnRoleMap.model_validate(dict(column_map))


def _as_query_context(
    query_context: QueryContext | Mapping[str, Any] | None,
    custom_fields: Sequence[CustomField | Mapping[str, Any]] | None,
) -> QueryContext:
    if query_context is None:
        context = QueryContext()
    elif isinstance(query_context, QueryContext):
        context = query_context
    else:
        context = QueryContext.from_payload(dict(query_context))

    if custom_fields:
        extra = [
            cf if isinstance(cf, CustomField) else CustomField.model_validate(dict(cf))
            for cf in custom_fields
        ]
        context = context.model_copy(update={"custom_fields": [*context.custom_fields, *extra]})
    return context


class ProRAG:
    """
    Retrieval-augmented answering over tabular and document knowledge bases.

    Args:
        config: Optional configuration. Uses defaults (and environment) if not provided.
        llm: LLM provider override (created from config on first use otherwise)
        embeddings: Embedding provider override (created from config on first use otherwise)
        repository: Store holder override (in-memory by default)
    """

    def __init__(
        self,
        config: "ProRAGConfig | None" = None,
        *,
        llm: "LLMProvider | None" = None,
        embeddings: "EmbeddingProvider | None" = None,
        repository: "StoreRepository | None" = None,
    ) -> None:
        # Lazy import to avoid circular imports
        if config is None:
            from prorag.config import ProRAGConfig
            config = ProRAGConfig()
        self._config = config

        self._llm = llm
        self._embeddings = embeddings
        self._repository = repository or InMemoryStoreRepository()

        self._composer = DocumentComposer()
        self._ingestor = TableIngestor()
        self._taxonomies = TaxonomyLoader(config.taxonomy_dir)
        self._graph_builder = GraphBuilder(label_length=config.graph_label_length)

        # Lazy-initialized components
        self._index: EmbeddingIndex | None = None
        self._pipeline: ProRAGPipeline | None = None
        self._dimension_cache: DimensionEmbeddingCache | None = None

        # Per-store-key build locks
        self._build_locks: dict[str, asyncio.Lock] = {}
        self._build_locks_lock = asyncio.Lock()

    # === Components ===

    @property
    def config(self) -> "ProRAGConfig":
        """Current configuration."""
        return self._config

    @property
    def llm(self) -> "LLMProvider":
        if self._llm is None:
            self._llm = create_llm_provider(self._config)
        return self._llm

    @property
    def embeddings(self) -> "EmbeddingProvider":
        if self._embeddings is None:
            self._embeddings = create_embedding_provider(self._config)
        return self._embeddings

    @property
    def index(self) -> EmbeddingIndex:
        if self._index is None:
            self._index = EmbeddingIndex(
                self.embeddings,
                self._repository,
                batch_size=self._config.embedding_batch_size,
                timeout=self._config.embedding_timeout_seconds,
            )
        return self._index

    @property
    def pipeline(self) -> ProRAGPipeline:
        if self._pipeline is None:
            retriever = Retriever(self.index, default_k=self._config.retrieval_top_k)
            self._pipeline = ProRAGPipeline(retriever, self.llm, self._config)
        return self._pipeline

    async def _lock_for(self, store_key: str) -> asyncio.Lock:
        async with self._build_locks_lock:
            if store_key not in self._build_locks:
                self._build_locks[store_key] = asyncio.Lock()
            return self._build_locks[store_key]

    # === Building ===

    async def _build_units(self, store_key: str, units: list[ContentUnit]) -> BuildResult:
        start = time.perf_counter_ns()
        lock = await self._lock_for(store_key)
        async with lock:
            store = await self.index.build_index(store_key, units)
        return BuildResult(
            store_key=store_key,
            unit_count=len(store),
            embedding_model=store.embedding_model,
            duration_ms=(time.perf_counter_ns() - start) // 1_000_000,
        )

    async def build_store(
        self,
        store_key: str,
        rows: Iterable[Mapping[str, Any]],
        column_map: ColumnRoleMap | Mapping[str, Any],
    ) -> BuildResult:
        """
        Compose rows into units, embed them and store them under a key.

        Replaces any existing store for the key.

        Raises:
            ValidationError: If the column map is missing a role or overlaps
            RetrievalError: If the embedding provider fails
        """
        column_map = _as_column_map(column_map)
        units = self._composer.compose(rows, column_map, id_prefix=store_key)
        return await self._build_units(store_key, units)

    async def build_store_from_file(
        self,
        store_key: str,
        path: str | Path,
        column_map: ColumnRoleMap | Mapping[str, Any],
    ) -> BuildResult:
        """
        Build a store from a CSV/TSV/Parquet/Excel file.

        Raises:
            ValidationError: On a bad column map, columns absent from the
                table, or an unsupported file type
        """
        column_map = _as_column_map(column_map)
        column_map.check()

        columns = await asyncio.to_thread(self._ingestor.columns, path)
        self._ingestor.require_columns(columns, column_map)

        rows = await asyncio.to_thread(self._ingestor.parse, path)
        return await self.build_store(store_key, rows, column_map)

    async def build_document_store(
        self,
        store_key: str,
        text: str,
    ) -> BuildResult:
        """Chunk a markdown/plain-text document and store its chunks under a key."""
        units = self._composer.compose_document(
            text,
            id_prefix=store_key,
            max_paragraphs_per_chunk=self._config.document_max_paragraphs,
            min_chunk_chars=self._config.document_min_chunk_chars,
            max_chunk_chars=self._config.document_max_chunk_chars,
        )
        if not units:
            logger.warning(f"Document for store '{store_key}' produced no chunks")
        return await self._build_units(store_key, units)

    async def build_document_store_from_file(
        self,
        store_key: str,
        path: str | Path,
    ) -> BuildResult:
        """
        Build a document store from a PDF, markdown or text file.

        Raises:
            ValidationError: If the file type is unsupported or the PDF is unreadable
            FileNotFoundError: If the file doesn't exist
        """
        text = await asyncio.to_thread(read_document, path)
        return await self.build_document_store(store_key, text)

    # === Querying ===

    async def query(
        self,
        store_key: str,
        query_context: QueryContext | Mapping[str, Any] | None,
        user_query: str,
        language: str | None = None,
        custom_fields: Sequence[CustomField | Mapping[str, Any]] | None = None,
        k: int | None = None,
        *,
        mode: PromptMode | str = PromptMode.STANDARD,
    ) -> QueryResult:
        """
        Answer a structured query from a store.

        Args:
            store_key: Store to search
            query_context: QueryContext or the upload form payload dict
            user_query: The user's question
            language: Answer language code (config default if None)
            custom_fields: Extra user-defined fields
            k: Units to retrieve (config default, 10, if None)
            mode: Standard or chain-of-thought prompting

        Raises:
            StoreNotFoundError: If no store exists for the key
        """
        if self._repository.get(store_key) is None:
            raise StoreNotFoundError(store_key)

        context = _as_query_context(query_context, custom_fields)
        return await self.pipeline.query(
            store_key,
            context,
            user_query,
            language or self._config.default_language,
            k,
            mode=mode,
        )

    async def chat(
        self,
        store_key: str,
        question: str,
        k: int | None = None,
    ) -> QueryResult:
        """
        Quick question answering over a store (typically a document store).

        Raises:
            StoreNotFoundError: If no store exists for the key
        """
        if self._repository.get(store_key) is None:
            raise StoreNotFoundError(store_key)
        return await self.pipeline.chat(store_key, question, k)

    # === Graph ===

    def _match_strategy(self, strategy: MatchStrategy | str | None) -> MatchStrategy:
        if isinstance(strategy, MatchStrategy):
            return strategy

        name = strategy or self._config.graph_match_strategy
        if name == "semantic":
            if self._dimension_cache is None:
                self._dimension_cache = DimensionEmbeddingCache(
                    self.embeddings, timeout=self._config.embedding_timeout_seconds
                )
            return SemanticMatchStrategy(
                self.embeddings,
                threshold=self._config.graph_semantic_threshold,
                cache=self._dimension_cache,
                timeout=self._config.embedding_timeout_seconds,
            )
        if name != "keyword":
            logger.warning(f"Unknown match strategy '{name}', using keyword matching")
        return KeywordMatchStrategy()

    async def build_graph(
        self,
        units: Sequence[ContentUnit | RetrievedUnit | None] | None,
        taxonomy_name: str | None = None,
        *,
        strategy: MatchStrategy | str | None = None,
    ) -> GraphData:
        """
        Build a relationship graph over units.

        Args:
            units: Units or retrieved units (e.g. ``result.retrieved_units``)
            taxonomy_name: Taxonomy to align with (e.g. "AIA"); None skips alignment
            strategy: MatchStrategy instance, "keyword" or "semantic"
                (config default if None)

        Returns:
            GraphData; an unknown taxonomy yields a graph without dimension nodes
        """
        taxonomy = self._taxonomies.load(taxonomy_name)
        match_strategy = self._match_strategy(strategy) if taxonomy is not None else None
        return await self._graph_builder.build(units, taxonomy, strategy=match_strategy)

    # === Store Management ===

    def delete_store(self, store_key: str) -> bool:
        """Delete a store. Returns True if one existed."""
        deleted = self._repository.delete(store_key)
        lock = self._build_locks.get(store_key)
        if lock is not None and not lock.locked():
            del self._build_locks[store_key]
        if deleted:
            logger.info(f"Deleted store '{store_key}'")
        return deleted

    def list_stores(self) -> list[str]:
        """Keys of all built stores."""
        return self._repository.keys()

    def get_store(self, store_key: str) -> "VectorStore":
        """
        Return a built store.

        Raises:
            StoreNotFoundError: If no store exists for the key
        """
        store = self._repository.get(store_key)
        if store is None:
            raise StoreNotFoundError(store_key)
        return store

    def table_columns(self, path: str | Path) -> list[str]:
        """Column names of a table file."""
        return self._ingestor.columns(path)

    def available_taxonomies(self) -> list[str]:
        """Names of loadable taxonomies."""
        return self._taxonomies.available()

    # === Sync API ===

    def build_store_sync(self, store_key: str, rows: Any, column_map: Any) -> BuildResult:
        """Synchronous wrapper for build_store()."""
        return asyncio.run(self.build_store(store_key, rows, column_map))

    def build_store_from_file_sync(
        self, store_key: str, path: str | Path, column_map: Any
    ) -> BuildResult:
        """Synchronous wrapper for build_store_from_file()."""
        return asyncio.run(self.build_store_from_file(store_key, path, column_map))

    def query_sync(self, store_key: str, query_context: Any, user_query: str, **kwargs: Any) -> QueryResult:
        """Synchronous wrapper for query()."""
        return asyncio.run(self.query(store_key, query_context, user_query, **kwargs))

    def build_graph_sync(self, units: Any, taxonomy_name: str | None = None, **kwargs: Any) -> GraphData:
        """Synchronous wrapper for build_graph()."""
        return asyncio.run(self.build_graph(units, taxonomy_name, **kwargs))
