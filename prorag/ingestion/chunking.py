"""
Markdown Chunker

Section-based markdown chunking with header breadcrumbs and even paragraph splitting.

Algorithm:
    1. Parse markdown into sections based on headers
    2. Split long sections evenly by paragraph count
    3. Filter small chunks
    4. Optionally cap chunk size, splitting on paragraphs, then lines, then words

Plain text without headers (e.g. text extracted from a PDF) is a single
preamble section; it relies on the size cap to stay retrievable.
"""

import re
from dataclasses import dataclass
from math import ceil


@dataclass
class _Section:
    """A parsed section from markdown."""

    header_path: str
    header_level: int  # 1 for #, 2 for ##, etc. (0 = no header/preamble)
    content: str


@dataclass(frozen=True)
class DocumentChunk:
    """One chunk of a document, in document order."""

    content: str
    header_path: str
    position: int


# Regex patterns
_HEADER_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
_TABLE_PATTERN = re.compile(r"<table>.*?</table>", re.DOTALL | re.IGNORECASE)
_CODE_BLOCK_PATTERN = re.compile(r"```.*?```", re.DOTALL)


def chunk_markdown(
    content: str,
    *,
    max_paragraphs_per_chunk: int = 6,
    min_chunk_chars: int = 50,
    max_chunk_chars: int | None = None,
) -> list[DocumentChunk]:
    """
    Split markdown into chunks by section, with paragraph-based subdivision.

    Args:
        content: Raw markdown or plain text
        max_paragraphs_per_chunk: Threshold for splitting long sections evenly
        min_chunk_chars: Filter out chunks smaller than this
        max_chunk_chars: Split chunks longer than this (None keeps sections whole)

    Returns:
        Chunks in document order, positions numbered from 0
    """
    # Normalize Windows line endings so paragraph splitting works
    sections = _parse_sections(content.replace("\r\n", "\n"))

    split_sections: list[_Section] = []
    for section in sections:
        if _count_paragraphs(section.content) > max_paragraphs_per_chunk:
            split_sections.extend(
                _split_section_evenly(section, max_paragraphs_per_chunk)
            )
        else:
            split_sections.append(section)

    chunks: list[DocumentChunk] = []
    for section in split_sections:
        text = section.content.strip()
        if len(text) < min_chunk_chars:
            continue
        pieces = _split_by_size(text, max_chunk_chars) if max_chunk_chars else [text]
        for piece in pieces:
            chunks.append(
                DocumentChunk(
                    content=piece,
                    header_path=section.header_path,
                    position=len(chunks),
                )
            )

    return chunks


def _parse_sections(content: str) -> list[_Section]:
    """
    Parse markdown into sections based on headers.

    Tracks header hierarchy to build breadcrumb paths like "Intro > Background".
    Content before the first header gets an empty header_path. Lines inside
    code fences are never treated as headers.
    """
    sections: list[_Section] = []

    # Track header stack: [(level, title), ...]
    header_stack: list[tuple[int, str]] = []
    current_content_lines: list[str] = []
    current_header_path = ""
    current_level = 0
    in_fence = False

    def flush_section() -> None:
        if current_content_lines:
            content_text = "\n".join(current_content_lines)
            if content_text.strip():
                sections.append(
                    _Section(
                        header_path=current_header_path,
                        header_level=current_level,
                        content=content_text,
                    )
                )

    for line in content.split("\n"):
        if line.lstrip().startswith("```"):
            in_fence = not in_fence

        match = None if in_fence else _HEADER_PATTERN.match(line)
        if match:
            flush_section()
            current_content_lines = []

            hashes, title = match.groups()
            level = len(hashes)

            # Pop headers at same or deeper level
            while header_stack and header_stack[-1][0] >= level:
                header_stack.pop()
            header_stack.append((level, title.strip()))

            current_header_path = " > ".join(h[1] for h in header_stack)
            current_level = level
        else:
            current_content_lines.append(line)

    flush_section()
    return sections


def _split_section_evenly(section: _Section, max_paragraphs: int) -> list[_Section]:
    """
    Split a section into evenly-sized chunks by paragraph.

    For 12 paragraphs with max_paragraphs=5:
        - Need ceil(12/5) = 3 chunks
        - Target size = 12/3 = 4 paragraphs each
    """
    paragraphs = _split_into_paragraphs(section.content)
    n_paragraphs = len(paragraphs)

    if n_paragraphs <= max_paragraphs:
        return [section]

    n_chunks = ceil(n_paragraphs / max_paragraphs)
    base_size = n_paragraphs // n_chunks
    remainder = n_paragraphs % n_chunks

    result: list[_Section] = []
    idx = 0
    for i in range(n_chunks):
        # First 'remainder' chunks get one extra paragraph
        chunk_size = base_size + (1 if i < remainder else 0)
        chunk_paragraphs = paragraphs[idx : idx + chunk_size]
        idx += chunk_size

        result.append(
            _Section(
                header_path=section.header_path,
                header_level=section.header_level,
                content="\n\n".join(chunk_paragraphs),
            )
        )

    return result


def _paragraphs(text: str) -> list[str]:
    return [p.strip() for p in text.split("\n\n") if p.strip()]


def _split_into_paragraphs(text: str) -> list[str]:
    """
    Split text into paragraphs, keeping tables and code blocks atomic.

    Tables (<table>...</table>) and code blocks (```...```) are treated
    as single paragraph units regardless of internal blank lines.
    """
    atomic_regions: list[tuple[int, int, str]] = []
    for pattern in (_TABLE_PATTERN, _CODE_BLOCK_PATTERN):
        for match in pattern.finditer(text):
            atomic_regions.append((match.start(), match.end(), match.group()))
    atomic_regions.sort(key=lambda x: x[0])

    if not atomic_regions:
        return _paragraphs(text)

    segments: list[str] = []
    last_end = 0
    for start, end, atomic_text in atomic_regions:
        # A code block inside a table (or vice versa) is already covered
        if start < last_end:
            continue
        segments.extend(_paragraphs(text[last_end:start]))
        segments.append(atomic_text.strip())
        last_end = end

    segments.extend(_paragraphs(text[last_end:]))
    return segments


def _count_paragraphs(text: str) -> int:
    """Count paragraphs, treating tables/code blocks as single units."""
    return len(_split_into_paragraphs(text))


_SIZE_SEPARATORS = ("\n\n", "\n", " ")


def _split_by_size(
    text: str,
    max_chars: int,
    separators: tuple[str, ...] = _SIZE_SEPARATORS,
) -> list[str]:
    """
    Pack text into pieces of at most ``max_chars`` characters.

    Tries the coarsest separator first and only falls back to a finer one
    for parts that are still too long. A single word longer than the limit
    is cut at the limit.
    """
    if len(text) <= max_chars:
        return [text]
    if not separators:
        return [text[i : i + max_chars] for i in range(0, len(text), max_chars)]

    separator, finer = separators[0], separators[1:]
    pieces: list[str] = []
    current = ""
    for part in text.split(separator):
        part = part.strip()
        if not part:
            continue
        if len(part) > max_chars:
            if current:
                pieces.append(current)
                current = ""
            pieces.extend(_split_by_size(part, max_chars, finer))
            continue
        candidate = f"{current}{separator}{part}" if current else part
        if len(candidate) <= max_chars:
            current = candidate
        else:
            pieces.append(current)
            current = part
    if current:
        pieces.append(current)
    return pieces
