"""
Ingestion

Turns tables and documents into content units.

Modules:
    tables: CSV/TSV/Parquet/Excel parsing (pyarrow, pandas)
    documents: PDF/markdown/text reading (pypdf)
    composer: Rows + column roles -> content units; documents -> units
    chunking: Section-aware markdown chunking with an optional size cap
"""

from prorag.ingestion.chunking import DocumentChunk, chunk_markdown
from prorag.ingestion.composer import DocumentComposer
from prorag.ingestion.documents import pdf_to_text, read_document
from prorag.ingestion.tables import TableIngestor

__all__ = [
    "DocumentComposer",
    "TableIngestor",
    "DocumentChunk",
    "chunk_markdown",
    "pdf_to_text",
    "read_document",
]
