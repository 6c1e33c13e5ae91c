from __future__ import annotations

import logging
from dataclasses import dataclass

from rosterlink_core.config import EditPolicy
from rosterlink_core.errors import RecordNotFound, TokenInvalid
from rosterlink_core.flows.policy import can_edit_member
from rosterlink_core.models import Startup, TeamMember
from rosterlink_core.services import PortalServices
from rosterlink_core.store.base import FieldEquals
from rosterlink_core.tokens import SessionClaims

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    startup: Startup
    members: list[TeamMember]
    token: str
    claims: SessionClaims
    edit_policy: EditPolicy
    current_member_id: str | None
    editable_member_ids: tuple[str, ...]

    @property
    def current_member(self) -> TeamMember | None:
        for member in self.members:
            if member.member_id == self.current_member_id:
                return member
        return None

    @property
    def editable_members(self) -> list[TeamMember]:
        allowed = set(self.editable_member_ids)
        return [m for m in self.members if m.member_id in allowed]


class DashboardFlow:
    """Verify a magic-link token and load the startup and its roster."""

    def __init__(self, services: PortalServices) -> None:
        self._services = services

    async def run(self, token: str) -> DashboardView:
        services = self._services
        layout = services.layout
        policy = services.config.auth.edit_policy

        claims = services.tokens.verify(token)

        try:
            record = await services.store.find_by_id(layout.startups_table, claims.startup_id)
        except RecordNotFound as exc:
            # The link points at a startup that no longer exists.
            raise TokenInvalid("Startup for this link no longer exists") from exc
        startup = Startup.from_record(record, layout.startup)

        # Follow the live record so a rename after issuance keeps the roster.
        roster_name = startup.name or claims.startup_name
        member_records = await services.store.find_by_filter(
            layout.members_table, FieldEquals(layout.member.startup, roster_name)
        )
        members = [TeamMember.from_record(r, layout.member) for r in member_records]
        logger.info(
            "Loaded dashboard for startup %s (%d members)", startup.startup_id, len(members)
        )

        current = next((m for m in members if m.email and m.email == claims.email), None)
        editable = tuple(
            m.member_id
            for m in members
            if can_edit_member(m, startup_name=roster_name, claims=claims, policy=policy)
        )

        return DashboardView(
            startup=startup,
            members=members,
            token=token,
            claims=claims,
            edit_policy=policy,
            current_member_id=current.member_id if current else None,
            editable_member_ids=editable,
        )
