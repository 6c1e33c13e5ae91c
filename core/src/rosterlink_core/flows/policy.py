from __future__ import annotations

from collections.abc import Iterable

from rosterlink_core.config import EditPolicy, MemberFields
from rosterlink_core.errors import Forbidden
from rosterlink_core.models import TeamMember
from rosterlink_core.tokens import SessionClaims


def can_edit_member(
    member: TeamMember,
    *,
    startup_name: str,
    claims: SessionClaims,
    policy: EditPolicy,
) -> bool:
    """Return True when a token holding `claims` may edit `member`.

    The member must always belong to the token's startup. Under `self_only` the
    member's personal email must also equal the token's email claim.
    """

    if not member.belongs_to(startup_name):
        return False
    if policy == EditPolicy.SELF_ONLY:
        return bool(member.email) and member.email == claims.email
    return True


def protected_fields(fields: MemberFields, policy: EditPolicy) -> frozenset[str]:
    """Member fields a profile update may never write.

    The startup backlink decides which startup a member (and any token later
    issued for their email) belongs to. Under `self_only` the personal email
    decides who counts as "self".
    """

    names = {fields.startup}
    if policy == EditPolicy.SELF_ONLY:
        names.add(fields.email)
    return frozenset(names)


def check_update_fields(
    field_names: Iterable[str], *, fields: MemberFields, policy: EditPolicy
) -> None:
    blocked = sorted(set(field_names) & protected_fields(fields, policy))
    if blocked:
        raise Forbidden(f"Fields cannot be changed: {', '.join(blocked)}")


def authorize_member_edit(
    member: TeamMember,
    *,
    startup_name: str,
    claims: SessionClaims,
    policy: EditPolicy,
) -> None:
    if not member.belongs_to(startup_name):
        raise Forbidden("Team member does not belong to this startup")
    if not can_edit_member(member, startup_name=startup_name, claims=claims, policy=policy):
        raise Forbidden("You can only update your own profile")
