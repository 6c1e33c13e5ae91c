from __future__ import annotations

import copy
import json
import secrets
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from rosterlink_core.errors import RecordNotFound, StoreError
from rosterlink_core.store.base import FieldEquals, Record


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_record_id() -> str:
    # Same shape as Airtable ids: "rec" + 14 alphanumerics.
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    return "rec" + "".join(secrets.choice(alphabet) for _ in range(14))


class InMemoryRecordStore:
    """Process-local record store (dev/testing only).

    Tables are created on first insert; reads return copies so callers cannot
    mutate stored state.
    """

    provider_name = "memory"

    def __init__(self, tables: Mapping[str, list[Mapping[str, Any]]] | None = None) -> None:
        self._tables: dict[str, dict[str, Record]] = {}
        for table, rows in (tables or {}).items():
            self._tables.setdefault(table, {})
            for row in rows:
                self.insert(table, dict(row.get("fields") or {}), record_id=row.get("id"))

    @classmethod
    def from_seed_file(cls, path: Path) -> InMemoryRecordStore:
        """Build a store from a JSON file: {"tables": {"<name>": [{"id", "fields"}]}}."""

        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict) or not isinstance(data.get("tables"), dict):
            raise ValueError(f"Invalid seed file format at {path}")
        return cls(data["tables"])

    def insert(
        self, table: str, fields: Mapping[str, Any], *, record_id: str | None = None
    ) -> Record:
        rid = record_id or new_record_id()
        record = Record(
            record_id=rid, fields=copy.deepcopy(dict(fields)), created_time=_utc_now_iso()
        )
        self._tables.setdefault(table, {})[rid] = record
        return copy.deepcopy(record)

    def _table(self, table: str) -> dict[str, Record]:
        rows = self._tables.get(table)
        if rows is None:
            raise StoreError(f"Could not find table {table!r}")
        return rows

    async def find_by_filter(
        self, table: str, criteria: FieldEquals, *, max_records: int | None = None
    ) -> list[Record]:
        matches = [copy.deepcopy(r) for r in self._table(table).values() if criteria.matches(r)]
        if max_records is not None:
            matches = matches[:max_records]
        return matches

    async def find_by_id(self, table: str, record_id: str) -> Record:
        record = self._table(table).get(record_id)
        if record is None:
            raise RecordNotFound(table, record_id)
        return copy.deepcopy(record)

    async def update(self, table: str, record_id: str, fields: Mapping[str, Any]) -> Record:
        rows = self._table(table)
        current = rows.get(record_id)
        if current is None:
            raise RecordNotFound(table, record_id)

        merged = dict(current.fields)
        merged.update(copy.deepcopy(dict(fields)))
        updated = Record(record_id=record_id, fields=merged, created_time=current.created_time)
        rows[record_id] = updated
        return copy.deepcopy(updated)

    async def aclose(self) -> None:
        return None
