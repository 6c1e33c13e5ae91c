from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class Record:
    record_id: str
    fields: dict[str, Any] = field(default_factory=dict)
    created_time: str | None = None

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


@dataclass(frozen=True)
class FieldEquals:
    """Equality predicate on a single named field."""

    field: str
    value: str

    def to_formula(self) -> str:
        # Airtable formula: {Field name} = "value"
        return "{" + _escape_field_name(self.field) + "} = " + quote_formula_string(self.value)

    def matches(self, record: Record) -> bool:
        raw = record.get(self.field)
        if isinstance(raw, list):
            return any(_as_text(v) == self.value for v in raw)
        return _as_text(raw) == self.value


def quote_formula_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _escape_field_name(name: str) -> str:
    # Field references cannot contain a closing brace.
    if "}" in name:
        raise ValueError(f"Unsupported field name: {name!r}")
    return name


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


class RecordStore(Protocol):
    """Remote tabular store holding the Startups and Team Members tables."""

    provider_name: str

    async def find_by_filter(
        self, table: str, criteria: FieldEquals, *, max_records: int | None = None
    ) -> list[Record]: ...

    async def find_by_id(self, table: str, record_id: str) -> Record: ...

    async def update(self, table: str, record_id: str, fields: Mapping[str, Any]) -> Record: ...

    async def aclose(self) -> None: ...
