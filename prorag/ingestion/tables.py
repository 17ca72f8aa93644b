"""
Table Ingestion

Reads tabular knowledge bases into row dictionaries.

Supported formats:
    - .csv / .tsv: pyarrow.csv
    - .parquet: pyarrow.parquet
    - .xlsx / .xls: pandas (first sheet; requires the "excel" extra)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.csv as pa_csv
import pyarrow.parquet as pq

from prorag.errors import ValidationError
from prorag.types import ColumnRoleMap

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".tsv"}
PARQUET_SUFFIXES = {".parquet"}
EXCEL_SUFFIXES = {".xlsx", ".xls"}
SUPPORTED_SUFFIXES = CSV_SUFFIXES | PARQUET_SUFFIXES | EXCEL_SUFFIXES


def _read_excel(path: Path) -> tuple[list[str], list[dict[str, Any]]]:
    try:
        import pandas as pd
    except ImportError:
        raise ImportError(
            "Excel support requires 'pandas' and 'openpyxl'. "
            "Install with: pip install prorag[excel]"
        )

    df = pd.read_excel(path, sheet_name=0, dtype=object)
    df.columns = [str(c) for c in df.columns]
    # Missing cells become None rather than NaN
    df = df.astype(object).where(df.notna(), None)
    return list(df.columns), df.to_dict(orient="records")


class TableIngestor:
    """Parses table files into rows and lists their columns."""

    def _check_path(self, path: Path) -> str:
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise ValidationError(
                f"Unsupported table type '{suffix or path.name}'. "
                f"Expected one of: {', '.join(sorted(SUPPORTED_SUFFIXES))}"
            )
        if not path.exists():
            raise FileNotFoundError(f"Table file not found: {path}")
        return suffix

    def _read_arrow(self, path: Path, suffix: str) -> pa.Table:
        if suffix in CSV_SUFFIXES:
            delimiter = "\t" if suffix == ".tsv" else ","
            return pa_csv.read_csv(
                path,
                parse_options=pa_csv.ParseOptions(delimiter=delimiter),
            )
        return pq.read_table(path)

    def parse(self, path: str | Path) -> list[dict[str, Any]]:
        """
        Read a table file into a list of row dicts.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValidationError: If the extension is not supported
        """
        path = Path(path)
        suffix = self._check_path(path)

        if suffix in EXCEL_SUFFIXES:
            _, rows = _read_excel(path)
        else:
            rows = self._read_arrow(path, suffix).to_pylist()

        logger.info(f"Read {len(rows)} rows from {path.name}")
        return rows

    def columns(self, path: str | Path) -> list[str]:
        """Column names of a table file, in file order."""
        path = Path(path)
        suffix = self._check_path(path)

        if suffix in EXCEL_SUFFIXES:
            columns, _ = _read_excel(path)
            return columns
        if suffix in PARQUET_SUFFIXES:
            return list(pq.read_schema(path).names)
        return list(self._read_arrow(path, suffix).column_names)

    @staticmethod
    def require_columns(available: list[str], column_map: ColumnRoleMap) -> None:
        """
        Check that every mapped column exists in the table.

        Raises:
            ValidationError: Naming the missing columns
        """
        known = set(available)
        missing = [col for col in column_map.all_columns() if col not in known]
        if missing:
            raise ValidationError(
                f"Columns not found in table: {', '.join(missing)}. "
                f"Available: {', '.join(available)}"
            )
