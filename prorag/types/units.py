"""
Content Unit Types

Content units are the retrievable blocks derived from table rows or
document sections.

Models:
    - Role: Semantic role of a column or query field
    - UnitTags: Auxiliary attributes shown alongside a unit
    - ContentUnit: One searchable unit (immutable once built)
    - ColumnRoleMap: Which table columns feed which role
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prorag.errors import ValidationError


class Role(str, Enum):
    """
    Role of a column or query field.

    DEPENDENCY: contextual constraint (e.g. a climate risk)
    REFERENCE: supporting citation (e.g. a code or guideline)
    STRATEGY: searchable action text
    """

    DEPENDENCY = "dependency"
    REFERENCE = "reference"
    STRATEGY = "strategy"

    @classmethod
    def parse(cls, value: Any) -> "Role | None":
        """Return the matching role, or None for anything unrecognized."""
        if isinstance(value, Role):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


class UnitTags(BaseModel):
    """Attributes carried next to the unit text; displayed, not searched."""

    dependency: str = ""
    reference: str = ""

    model_config = ConfigDict(frozen=True)


class ContentUnit(BaseModel):
    """
    A retrievable content unit.

    Attributes:
        id: Unique identifier within its store
        text: Retrievable body (joined strategy column text)
        tags: Dependency / reference attributes used for display and graph edges
    """

    id: str
    text: str
    tags: UnitTags = Field(default_factory=UnitTags)

    model_config = ConfigDict(frozen=True)


class ColumnRoleMap(BaseModel):
    """
    Assignment of table columns to roles.

    Accepts both snake_case names and the camelCase keys used by the
    upload form (``dependencyCol``, ``strategyCol``, ``referenceCol``).
    A single column name is accepted in place of a list.

    The map is only checked when a build needs it; see ``check()``.
    """

    dependency_cols: list[str] = Field(default_factory=list, alias="dependencyCol")
    strategy_cols: list[str] = Field(default_factory=list, alias="strategyCol")
    reference_cols: list[str] = Field(default_factory=list, alias="referenceCol")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("dependency_cols", "strategy_cols", "reference_cols", mode="before")
    @classmethod
    def _coerce_to_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    def columns_for(self, role: Role) -> list[str]:
        """Columns assigned to a role."""
        return {
            Role.DEPENDENCY: self.dependency_cols,
            Role.STRATEGY: self.strategy_cols,
            Role.REFERENCE: self.reference_cols,
        }[role]

    def all_columns(self) -> list[str]:
        """Every mapped column, in role order."""
        return [*self.dependency_cols, *self.strategy_cols, *self.reference_cols]

    def check(self) -> None:
        """
        Enforce that every role has columns and no column has two roles.

        Raises:
            ValidationError: If a role is empty or the role sets overlap
        """
        for role in Role:
            if not self.columns_for(role):
                raise ValidationError(f"Column map has no {role.value} columns")

        seen: dict[str, Role] = {}
        for role in Role:
            for col in self.columns_for(role):
                if col in seen and seen[col] is not role:
                    raise ValidationError(
                        f"Column '{col}' is mapped to both "
                        f"{seen[col].value} and {role.value}"
                    )
                seen[col] = role
