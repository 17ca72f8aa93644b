"""
Query Types

Structured, typed query input and its assembled form.

Input Models:
    - QueryField: Values of one named field group plus their role
    - CustomField: Free-form user-defined field
    - QueryContext: All field groups, additional text and custom fields

Assembled Models:
    - AssembledQuery: Role buckets plus the canonical retrieval text
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from prorag.types.units import Role


def _split_declared_role(data: Any, *keys: str) -> Any:
    """Resolve the first present role key into (role, declared_role)."""
    if not isinstance(data, dict):
        return data
    data = dict(data)
    raw: Any = None
    for key in keys:
        if key in data:
            raw = data.pop(key)
            break
    if "declared_role" not in data:
        if isinstance(raw, Role):
            data["declared_role"] = raw.value
        else:
            data["declared_role"] = "" if raw is None else str(raw)
    data["role"] = Role.parse(raw)
    return data


class QueryField(BaseModel):
    """
    One named field group of a structured query.

    ``role`` is None when the declared role is not one of the known roles;
    ``declared_role`` keeps the raw value for diagnostics.
    """

    values: list[str] = Field(default_factory=list)
    role: Role | None = None
    declared_role: str = ""

    @model_validator(mode="before")
    @classmethod
    def _resolve_role(cls, data: Any) -> Any:
        return _split_declared_role(data, "role", "type")

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_values(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]


class CustomField(BaseModel):
    """A user-defined field, rendered as ``"{name}: {value}"``."""

    name: str = Field(alias="fieldName")
    value: str = Field(default="", alias="fieldValue")
    role: Role | None = None
    declared_role: str = ""

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _resolve_role(cls, data: Any) -> Any:
        return _split_declared_role(data, "role", "fieldType")

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Any:
        return "" if value is None else str(value)


class QueryContext(BaseModel):
    """
    A structured multi-field query.

    Attributes:
        field_groups: Field group name -> QueryField, iterated in insertion order
        additional_text: Free-form extra context
        custom_fields: User-defined fields
    """

    field_groups: dict[str, QueryField] = Field(default_factory=dict)
    additional_text: str = Field(default="", alias="additional")
    custom_fields: list[CustomField] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any] | None,
        custom_fields: list[dict[str, Any]] | None = None,
    ) -> "QueryContext":
        """
        Build a context from the upload form's payload shape.

        Example payload:
            {
                "climateRisks": {"values": ["Flooding"], "type": "dependency"},
                "regulations": {"values": ["wetland"], "type": "reference"},
                "additional": "south-facing lot",
            }

        Entries that are not ``{values, type}`` objects are ignored.
        """
        payload = payload or {}
        fields: dict[str, QueryField] = {}
        additional = ""

        for name, entry in payload.items():
            if name == "additional":
                additional = "" if entry is None else str(entry)
            elif isinstance(entry, dict) and "values" in entry:
                fields[name] = QueryField.model_validate(entry)

        return cls(
            field_groups=fields,
            additional_text=additional,
            custom_fields=[CustomField.model_validate(cf) for cf in custom_fields or []],
        )


class AssembledQuery(BaseModel):
    """
    Output of query context assembly.

    ``combined_query_text`` is the text embedded and searched; its section
    order is fixed.
    """

    dep_texts: list[str] = Field(default_factory=list)
    ref_texts: list[str] = Field(default_factory=list)
    str_texts: list[str] = Field(default_factory=list)
    additional_text: str = ""
    user_query: str = ""
    combined_query_text: str = ""
    unrouted_fields: list[str] = Field(default_factory=list)

    def summary_lines(self) -> list[str]:
        """Display-ready lines describing the typed context."""
        return [
            f"- Dependencies: {', '.join(self.dep_texts)}",
            f"- References: {', '.join(self.ref_texts)}",
            f"- Strategies: {', '.join(self.str_texts)}",
            f"Additional info: {self.additional_text}",
        ]

    def to_display_text(self) -> str:
        return "\n".join(self.summary_lines())

    def is_empty(self) -> bool:
        """True when no typed context or additional text was supplied."""
        return not (
            self.dep_texts or self.ref_texts or self.str_texts or self.additional_text.strip()
        )
