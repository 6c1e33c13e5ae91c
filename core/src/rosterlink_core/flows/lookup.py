from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from rosterlink_core.errors import BadRequest, NotFound
from rosterlink_core.models import Startup, text_field
from rosterlink_core.services import PortalServices
from rosterlink_core.store.base import FieldEquals, Record
from rosterlink_core.tokens import SessionClaims

logger = logging.getLogger(__name__)


def format_store_timestamp(value: datetime) -> str:
    # Full ISO-8601 in UTC with milliseconds, e.g. 2024-05-01T10:15:00.000Z
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_dashboard_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/dashboard/{token}"


@dataclass(frozen=True)
class LookupResult:
    link: str
    token: str
    expires_at: datetime
    startup: Startup


class LookupFlow:
    """Resolve an email to a startup, issue a magic link and store it on the startup."""

    def __init__(self, services: PortalServices) -> None:
        self._services = services

    async def _resolve_startup(self, email: str) -> Record:
        store = self._services.store
        layout = self._services.layout

        logger.info("Checking startups table for primary contact email")
        startups = await store.find_by_filter(
            layout.startups_table, FieldEquals(layout.startup.primary_email, email)
        )
        if startups:
            logger.info("Found email in startups table (startup %s)", startups[0].record_id)
            return startups[0]

        logger.info("Not in startups table, checking team members")
        members = await store.find_by_filter(
            layout.members_table, FieldEquals(layout.member.email, email)
        )
        if not members:
            logger.warning("Email not found in either startups or team members")
            raise NotFound("Email not found in our records")

        startup_name = text_field(members[0], layout.member.startup)
        if not startup_name:
            logger.warning("No startup associated with team member %s", members[0].record_id)
            raise NotFound("No startup associated with this email")

        logger.info("Searching for startup %r", startup_name)
        startups = await store.find_by_filter(
            layout.startups_table, FieldEquals(layout.startup.name, startup_name)
        )
        if not startups:
            logger.warning("Startup %r not found", startup_name)
            raise NotFound("Startup not found")
        return startups[0]

    async def run(
        self, email: str | None, *, base_url: str, now: datetime | None = None
    ) -> LookupResult:
        if email is None or not email.strip():
            raise BadRequest("Email is required")

        services = self._services
        layout = services.layout

        # Matched exactly as supplied; the store decides case sensitivity.
        record = await self._resolve_startup(email)
        startup = Startup.from_record(record, layout.startup)

        issued_at = now or datetime.now(UTC)
        claims = SessionClaims(
            startup_id=startup.startup_id,
            startup_name=startup.name or "",
            email=email,
            timestamp=int(issued_at.timestamp() * 1000),
        )
        token = services.tokens.issue(claims, now=issued_at)
        expires_at = services.tokens.expires_at(issued_at)

        link = build_dashboard_url(services.config.network.public_base_url or base_url, token)

        fields: dict[str, str] = {name: link for name in layout.startup.link_fields}
        fields[layout.startup.link_expires_at] = format_store_timestamp(expires_at)

        logger.info("Saving magic link to startup %s", startup.startup_id)
        await services.store.update(layout.startups_table, startup.startup_id, fields)

        return LookupResult(link=link, token=token, expires_at=expires_at, startup=startup)
