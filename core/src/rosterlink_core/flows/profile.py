from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from rosterlink_core.errors import BadRequest
from rosterlink_core.flows.policy import authorize_member_edit, check_update_fields
from rosterlink_core.models import Startup, TeamMember
from rosterlink_core.services import PortalServices

logger = logging.getLogger(__name__)


class ProfileUpdateFlow:
    """Write caller-supplied field updates to a team-member record.

    Authorization: the token must verify, the member must belong to the token's
    startup, and the configured edit policy must allow the token to edit them.
    The startup backlink (and, under `self_only`, the personal email) is never
    writable.
    Last write wins; nothing is audited.
    """

    def __init__(self, services: PortalServices) -> None:
        self._services = services

    def _check_fields(self, updates: Mapping[str, Any]) -> None:
        allowed = self._services.config.auth.editable_fields
        if allowed is None:
            return
        allowed_set = set(allowed)
        unknown = sorted(k for k in updates if k not in allowed_set)
        if unknown:
            raise BadRequest(f"Fields not editable: {', '.join(unknown)}")

    async def run(
        self, token: str, member_id: str | None, updates: Mapping[str, Any] | None
    ) -> TeamMember:
        services = self._services
        layout = services.layout

        claims = services.tokens.verify(token)

        if not member_id:
            raise BadRequest("memberId is required")
        if not updates:
            raise BadRequest("No updates provided")
        self._check_fields(updates)
        check_update_fields(
            updates, fields=layout.member, policy=services.config.auth.edit_policy
        )

        member = TeamMember.from_record(
            await services.store.find_by_id(layout.members_table, member_id), layout.member
        )
        startup = Startup.from_record(
            await services.store.find_by_id(layout.startups_table, claims.startup_id),
            layout.startup,
        )
        authorize_member_edit(
            member,
            startup_name=startup.name or claims.startup_name,
            claims=claims,
            policy=services.config.auth.edit_policy,
        )

        record = await services.store.update(layout.members_table, member_id, dict(updates))
        logger.info("Updated team member %s (%d fields)", member_id, len(updates))
        return TeamMember.from_record(record, layout.member)
