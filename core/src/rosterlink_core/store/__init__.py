from __future__ import annotations

from pathlib import Path

from rosterlink_core.config import CoreConfig
from rosterlink_core.store.airtable import AirtableRecordStore
from rosterlink_core.store.base import FieldEquals, Record, RecordStore
from rosterlink_core.store.memory import InMemoryRecordStore


def build_record_store(config: CoreConfig) -> RecordStore:
    """Create the configured record store provider."""

    cfg = config.store
    if cfg.backend == "memory":
        if cfg.seed_path:
            return InMemoryRecordStore.from_seed_file(Path(cfg.seed_path).expanduser())
        return InMemoryRecordStore(
            {cfg.layout.startups_table: [], cfg.layout.members_table: []}
        )

    if cfg.backend == "airtable":
        return AirtableRecordStore(
            api_key=(cfg.api_key or "").strip(),
            base_id=(cfg.base_id or "").strip(),
            api_url=cfg.api_url,
            timeout_seconds=cfg.timeout_seconds,
            typecast=cfg.typecast,
        )

    raise ValueError(f"Unsupported store backend: {cfg.backend}")


__all__ = [
    "AirtableRecordStore",
    "FieldEquals",
    "InMemoryRecordStore",
    "Record",
    "RecordStore",
    "build_record_store",
]
