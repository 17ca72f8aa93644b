"""
Text Processing Utilities

Functions for cell coercion and label normalization.
"""

from __future__ import annotations

import math
import re
from typing import Any


def cell_text(value: Any) -> str:
    """
    Coerce a table cell to text.

    None and NaN become "" so missing cells never render as "nan".
    """
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def collapse_newlines(text: str) -> str:
    """Replace line breaks with single spaces."""
    return re.sub(r"[\r\n]+", " ", text)


def normalize_label(label: str) -> str:
    """
    Normalize a label for node identity.

    Case-folded with whitespace collapsed, so "Flood  Zone" and "flood zone"
    map to the same node.
    """
    return re.sub(r"\s+", " ", label).strip().casefold()


def split_tag_values(value: str) -> list[str]:
    """Split a comma-joined tag string into trimmed, non-empty tokens."""
    return [token.strip() for token in value.split(",") if token.strip()]
