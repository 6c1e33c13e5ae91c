from __future__ import annotations

import asyncio

import pytest

from conftest import make_config, seed_store
from rosterlink_core.config import EditPolicy, MemberFields
from rosterlink_core.errors import BadRequest, Forbidden, NotFound
from rosterlink_core.flows import (
    DashboardFlow,
    LookupFlow,
    ProfileUpdateFlow,
    authorize_member_edit,
    can_edit_member,
    check_update_fields,
)
from rosterlink_core.models import TeamMember
from rosterlink_core.store.base import Record
from rosterlink_core.services import build_portal_services
from rosterlink_core.tokens import SessionClaims


def _services(**auth):
    return build_portal_services(make_config(**auth), store=seed_store())


def test_lookup_flow_scenario_member_backlink() -> None:
    services = _services()
    result = asyncio.run(LookupFlow(services).run("a@x.com", base_url="http://portal.test/"))

    assert result.link == f"http://portal.test/dashboard/{result.token}"
    assert result.startup.name == "Acme"

    claims = services.tokens.verify(result.token)
    assert claims.startup_name == "Acme"
    assert claims.email == "a@x.com"


@pytest.mark.parametrize(
    ("email", "exc_type", "message"),
    [
        (None, BadRequest, "Email is required"),
        ("nobody@x.com", NotFound, "Email not found in our records"),
        ("orphan@x.com", NotFound, "No startup associated with this email"),
        ("eve@gone.io", NotFound, "Startup not found"),
    ],
)
def test_lookup_flow_failures(email, exc_type, message) -> None:
    with pytest.raises(exc_type) as excinfo:
        asyncio.run(LookupFlow(_services()).run(email, base_url="http://portal.test"))
    assert excinfo.value.message == message


def test_dashboard_flow_marks_current_member() -> None:
    services = _services()

    async def _run():
        result = await LookupFlow(services).run("bob@acme.io", base_url="http://t")
        return await DashboardFlow(services).run(result.token)

    view = asyncio.run(_run())
    assert view.current_member is not None
    assert view.current_member.name == "Bob"
    assert {m.member_id for m in view.members} == {"recAlice", "recBob"}
    assert set(view.editable_member_ids) == {"recAlice", "recBob"}


def test_profile_flow_rejects_member_of_other_startup() -> None:
    services = _services()

    async def _run():
        result = await LookupFlow(services).run("a@x.com", base_url="http://t")
        await ProfileUpdateFlow(services).run(result.token, "recCarol", {"Mobile*": "1"})

    with pytest.raises(Forbidden):
        asyncio.run(_run())


def _claims(email: str) -> SessionClaims:
    return SessionClaims(startup_id="recAcme", startup_name="Acme", email=email, timestamp=0)


def _member(email: str | None, startup: str | None) -> TeamMember:
    return TeamMember(
        member_id="rec1",
        name="Alice",
        email=email,
        mobile=None,
        position=None,
        association=None,
        status=None,
        startup_name=startup,
    )


def test_edit_policy_rules() -> None:
    own = _member("a@x.com", "Acme")
    other = _member("b@x.com", "Acme")
    foreign = _member("a@x.com", "Beta Labs")
    claims = _claims("a@x.com")

    for policy in EditPolicy:
        assert can_edit_member(own, startup_name="Acme", claims=claims, policy=policy)
        assert not can_edit_member(foreign, startup_name="Acme", claims=claims, policy=policy)

    assert can_edit_member(
        other, startup_name="Acme", claims=claims, policy=EditPolicy.ANY_MEMBER
    )
    assert not can_edit_member(
        other, startup_name="Acme", claims=claims, policy=EditPolicy.SELF_ONLY
    )

    with pytest.raises(Forbidden, match="does not belong"):
        authorize_member_edit(
            foreign, startup_name="Acme", claims=claims, policy=EditPolicy.ANY_MEMBER
        )
    with pytest.raises(Forbidden, match="own profile"):
        authorize_member_edit(
            other, startup_name="Acme", claims=claims, policy=EditPolicy.SELF_ONLY
        )


def test_profile_updates_never_write_protected_fields() -> None:
    fields = MemberFields()

    for policy in EditPolicy:
        with pytest.raises(Forbidden, match=r"Startup\*"):
            check_update_fields(["Mobile*", "Startup*"], fields=fields, policy=policy)
        check_update_fields(["Mobile*", "Position at startup*"], fields=fields, policy=policy)

    check_update_fields(["Personal email*"], fields=fields, policy=EditPolicy.ANY_MEMBER)
    with pytest.raises(Forbidden, match=r"Personal email\*"):
        check_update_fields(["Personal email*"], fields=fields, policy=EditPolicy.SELF_ONLY)


def test_profile_flow_rejects_backlink_change_before_writing() -> None:
    services = _services()

    async def _run():
        result = await LookupFlow(services).run("a@x.com", base_url="http://t")
        with pytest.raises(Forbidden):
            await ProfileUpdateFlow(services).run(
                result.token, "recAlice", {"Startup*": "Beta Labs"}
            )
        return await services.store.find_by_id("Team members", "recAlice")

    assert asyncio.run(_run()).get("Startup*") == "Acme"


def test_member_belongs_to_any_linked_startup() -> None:
    record = Record(
        record_id="recMulti",
        fields={"Personal email*": "a@x.com", "Startup*": ["Beta Labs", "", "Acme"]},
    )
    member = TeamMember.from_record(record, MemberFields())

    assert member.startup_name == "Beta Labs"
    assert member.startup_names == ("Beta Labs", "Acme")
    assert member.belongs_to("Acme")
    assert member.belongs_to("Beta Labs")
    assert not member.belongs_to("Gone Inc")
    assert not member.belongs_to("")

    claims = _claims("a@x.com")
    for policy in EditPolicy:
        authorize_member_edit(member, startup_name="Acme", claims=claims, policy=policy)

    # Views built without the full backlink list fall back to the single name.
    assert _member("a@x.com", "Acme").belongs_to("Acme")
    assert not _member("a@x.com", None).belongs_to("Acme")
