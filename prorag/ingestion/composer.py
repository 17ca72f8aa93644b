"""
Document Composer

Turns raw table rows (or a markdown/text document) into content units.

Row composition:
    - text: strategy column values joined with newlines
    - tags.dependency: dependency column values joined with ", "
    - tags.reference: reference column values joined with ", "

Missing columns, None and NaN cells all compose as empty strings. Rows
whose strategy text is empty are kept; the index gives them a zero vector.

Example:
    >>> composer = DocumentComposer()
    >>> units = composer.compose(
    ...     [{"Risk": "Flooding", "Strategy": "Elevate structures", "Code": "FEMA P-55"}],
    ...     ColumnRoleMap(dependency_cols=["Risk"], strategy_cols=["Strategy"], reference_cols=["Code"]),
    ... )
    >>> units[0].text
    'Elevate structures'
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from prorag.ingestion.chunking import chunk_markdown
from prorag.types import ColumnRoleMap, ContentUnit, UnitTags
from prorag.utils.text import cell_text

logger = logging.getLogger(__name__)


def _join_cells(row: Mapping[str, Any], columns: list[str], separator: str) -> str:
    return separator.join(cell_text(row.get(col)) for col in columns).strip()


class DocumentComposer:
    """
    Composes content units from rows and documents.

    Stateless; one instance can be shared across builds.
    """

    def compose(
        self,
        rows: Iterable[Mapping[str, Any]],
        column_map: ColumnRoleMap,
        *,
        id_prefix: str = "row",
    ) -> list[ContentUnit]:
        """
        Compose one unit per row.

        Args:
            rows: Table rows as column -> cell mappings
            column_map: Column role assignment
            id_prefix: Prefix for unit ids ("{id_prefix}_row_{i:04d}")

        Returns:
            Units in row order

        Raises:
            ValidationError: If a role has no columns or two roles share a column
        """
        column_map.check()

        units: list[ContentUnit] = []
        for i, row in enumerate(rows):
            units.append(
                ContentUnit(
                    id=f"{id_prefix}_row_{i:04d}",
                    text=_join_cells(row, column_map.strategy_cols, "\n"),
                    tags=UnitTags(
                        dependency=_join_cells(row, column_map.dependency_cols, ", "),
                        reference=_join_cells(row, column_map.reference_cols, ", "),
                    ),
                )
            )

        blank = sum(1 for u in units if not u.text)
        if blank:
            logger.debug(f"{blank}/{len(units)} rows have no strategy text")
        return units

    def compose_document(
        self,
        text: str,
        *,
        id_prefix: str = "doc",
        max_paragraphs_per_chunk: int = 6,
        min_chunk_chars: int = 50,
        max_chunk_chars: int | None = None,
    ) -> list[ContentUnit]:
        """
        Compose units from a markdown or plain-text document.

        Each chunk becomes a unit whose ``tags.reference`` is the header
        breadcrumb (e.g. "Site > Drainage") and whose dependency tag is empty.
        Unit ids are "{id_prefix}_chunk_{position:04d}".
        """
        chunks = chunk_markdown(
            text,
            max_paragraphs_per_chunk=max_paragraphs_per_chunk,
            min_chunk_chars=min_chunk_chars,
            max_chunk_chars=max_chunk_chars,
        )
        return [
            ContentUnit(
                id=f"{id_prefix}_chunk_{chunk.position:04d}",
                text=chunk.content,
                tags=UnitTags(reference=chunk.header_path),
            )
            for chunk in chunks
        ]
