from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rosterlink_core.config import MemberFields, StartupFields
from rosterlink_core.store.base import Record


def text_field(record: Record, name: str) -> str | None:
    """Read a field as text; list values (linked records, lookups) use the first entry."""

    raw = record.get(name)
    if isinstance(raw, list):
        raw = next((v for v in raw if v not in (None, "")), None)
    if raw is None:
        return None
    value = str(raw)
    return value if value.strip() else None


def text_values(record: Record, name: str) -> tuple[str, ...]:
    """Every non-blank text entry of a field; scalars give a one-element tuple."""

    raw = record.get(name)
    items = raw if isinstance(raw, list) else [raw]
    return tuple(str(v) for v in items if v is not None and str(v).strip())


@dataclass(frozen=True)
class Startup:
    startup_id: str
    name: str | None
    primary_contact: str | None
    status: str | None
    record_number: str | None
    link: str | None
    link_expires_at: str | None

    @staticmethod
    def from_record(record: Record, fields: StartupFields) -> Startup:
        link = None
        for name in fields.link_fields:
            link = text_field(record, name)
            if link:
                break
        return Startup(
            startup_id=record.record_id,
            name=text_field(record, fields.name),
            primary_contact=text_field(record, fields.primary_email),
            status=text_field(record, fields.status),
            record_number=text_field(record, fields.record_number),
            link=link,
            link_expires_at=text_field(record, fields.link_expires_at),
        )


@dataclass(frozen=True)
class TeamMember:
    member_id: str
    name: str | None
    email: str | None
    mobile: str | None
    position: str | None
    association: str | None
    status: str | None
    startup_name: str | None
    startup_names: tuple[str, ...] = ()

    @staticmethod
    def from_record(record: Record, fields: MemberFields) -> TeamMember:
        return TeamMember(
            member_id=record.record_id,
            name=text_field(record, fields.name),
            email=text_field(record, fields.email),
            mobile=text_field(record, fields.mobile),
            position=text_field(record, fields.position),
            association=text_field(record, fields.association),
            status=text_field(record, fields.status),
            startup_name=text_field(record, fields.startup),
            startup_names=text_values(record, fields.startup),
        )

    def belongs_to(self, startup_name: str) -> bool:
        """True when any backlink entry names `startup_name`."""

        if not startup_name:
            return False
        names = self.startup_names or ((self.startup_name,) if self.startup_name else ())
        return startup_name in names

    def to_client(self) -> dict[str, Any]:
        # Shape consumed by the dashboard's inline script.
        return {
            "id": self.member_id,
            "name": self.name,
            "email": self.email,
            "mobile": self.mobile,
            "position": self.position,
            "association": self.association,
            "status": self.status,
        }
