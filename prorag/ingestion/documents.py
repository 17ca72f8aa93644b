"""
Document Reader

Reads documents for chat stores into plain text for the chunker.

Supported formats:
    - .pdf: page text via pypdf (requires the "pdf" extra), pages separated
      by blank lines
    - .md / .markdown / .txt: read as UTF-8

Example:
    >>> text = read_document("guidelines.pdf")
    >>> units = DocumentComposer().compose_document(text, max_chunk_chars=500)
"""

from __future__ import annotations

import logging
from pathlib import Path

from prorag.errors import ValidationError

logger = logging.getLogger(__name__)

PDF_SUFFIXES = {".pdf"}
TEXT_SUFFIXES = {".md", ".markdown", ".txt"}
DOCUMENT_SUFFIXES = PDF_SUFFIXES | TEXT_SUFFIXES


def pdf_to_text(pdf_path: Path | str) -> str:
    """
    Extract the text of every page of a PDF.

    Raises:
        ImportError: If pypdf is not installed
        FileNotFoundError: If the PDF doesn't exist
        ValidationError: If the file is not a readable PDF
    """
    try:
        from pypdf import PdfReader
        from pypdf.errors import PdfReadError
    except ImportError:
        raise ImportError(
            "PDF support requires the 'pypdf' package. "
            "Install with: pip install prorag[pdf]"
        )

    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    try:
        reader = PdfReader(pdf_path)
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except PdfReadError as exc:
        raise ValidationError(f"Could not read PDF {pdf_path.name}: {exc}") from exc

    text = "\n\n".join(page for page in pages if page)
    if not text:
        logger.warning(f"No extractable text in {pdf_path.name} (scanned PDF?)")
    logger.info(f"Extracted {len(text)} characters from {len(pages)} pages of {pdf_path.name}")
    return text


def read_document(path: Path | str) -> str:
    """
    Read a PDF, markdown or text document.

    Raises:
        ValidationError: If the extension is not supported
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in DOCUMENT_SUFFIXES:
        raise ValidationError(
            f"Unsupported document type '{suffix or path.name}'. "
            f"Expected one of: {', '.join(sorted(DOCUMENT_SUFFIXES))}"
        )
    if suffix in PDF_SUFFIXES:
        return pdf_to_text(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")
    return path.read_text(encoding="utf-8")
