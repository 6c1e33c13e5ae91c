from __future__ import annotations

from rosterlink_core.flows.dashboard import DashboardFlow, DashboardView
from rosterlink_core.flows.lookup import LookupFlow, LookupResult
from rosterlink_core.flows.policy import (
    authorize_member_edit,
    can_edit_member,
    check_update_fields,
)
from rosterlink_core.flows.profile import ProfileUpdateFlow

__all__ = [
    "DashboardFlow",
    "DashboardView",
    "LookupFlow",
    "LookupResult",
    "ProfileUpdateFlow",
    "authorize_member_edit",
    "can_edit_member",
    "check_update_fields",
]
