"""
Taxonomy Loader

Resolves a taxonomy name to its dimensions.

Sources, in lookup order:
    1. ``{taxonomy_dir}/{name}.json`` when a taxonomy directory is configured
    2. Built-in taxonomies (currently "AIA", the AIA Framework for Design Excellence)

File shape:
    {"dimensions": [{"id": ..., "name": ..., "keywords": [...], "description": ...}]}

Unknown names and malformed files resolve to None; graph building then
proceeds without alignment.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from prorag.types import DimensionDescriptor, Taxonomy

logger = logging.getLogger(__name__)


AIA_DIMENSIONS = [
    DimensionDescriptor(
        id="designForIntegration",
        name="Design for Integration",
        keywords=("integrat", "big idea"),
        description=(
            "Good design elevates any project, no matter how small, with a thoughtful "
            "process that delivers both beauty and function in balance. It is the "
            "element that binds all the principles together with a big idea."
        ),
    ),
    DimensionDescriptor(
        id="designForWater",
        name="Design for Water",
        keywords=("flood", "floodplain", "stormwater", "sea level rise", "water"),
        description=(
            "Good design conserves and improves the quality of water as a precious resource."
        ),
    ),
    DimensionDescriptor(
        id="designForEconomy",
        name="Design for Economy",
        keywords=("economic", "budget", "long-term value"),
        description=(
            "Good design depends on informed material selection, balancing priorities "
            "to achieve durable, safe, and healthy projects with an equitable, "
            "sustainable supply chain to minimize possible negative impacts to the planet."
        ),
    ),
]

BUILTIN_TAXONOMIES: dict[str, list[DimensionDescriptor]] = {
    "AIA": AIA_DIMENSIONS,
}


class TaxonomyLoader:
    """
    Loads taxonomies by name.

    Args:
        taxonomy_dir: Optional directory of ``{name}.json`` files; a file
            with a built-in's name overrides the built-in
    """

    def __init__(self, taxonomy_dir: str | Path | None = None) -> None:
        self._taxonomy_dir = Path(taxonomy_dir) if taxonomy_dir else None

    def _load_file(self, name: str, path: Path) -> Taxonomy | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, list):
                data = {"dimensions": data}
            if not isinstance(data, dict):
                raise ValueError("expected an object with a 'dimensions' list")
            return Taxonomy(name=name, dimensions=data.get("dimensions") or [])
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.warning(f"Ignoring malformed taxonomy file {path}: {e}")
            return None

    def load(self, name: str | None) -> Taxonomy | None:
        """
        Resolve a taxonomy.

        Returns:
            The taxonomy, or None when the name is empty, unknown or its
            file cannot be parsed
        """
        if not name:
            return None

        if self._taxonomy_dir is not None:
            path = self._taxonomy_dir / f"{name}.json"
            if path.is_file():
                return self._load_file(name, path)

        if name in BUILTIN_TAXONOMIES:
            return Taxonomy(name=name, dimensions=list(BUILTIN_TAXONOMIES[name]))

        logger.warning(f"Taxonomy '{name}' not found")
        return None

    def available(self) -> list[str]:
        """Names of all loadable taxonomies, sorted."""
        names = set(BUILTIN_TAXONOMIES)
        if self._taxonomy_dir is not None and self._taxonomy_dir.is_dir():
            names.update(p.stem for p in self._taxonomy_dir.glob("*.json"))
        return sorted(names)
