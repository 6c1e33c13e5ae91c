from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates

from rosterlink_core.config import MemberFields
from rosterlink_core.flows.dashboard import DashboardView

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _render(name: str, context: dict) -> str:
    return templates.get_template(name).render(context)


def render_dashboard(view: DashboardView, *, fields: MemberFields | None = None) -> str:
    """Render the full dashboard document for `view`.

    `fields` names the store columns the profile forms submit; the defaults match
    the standard Team Members layout.
    """

    startup_name = view.startup.name or "Your startup"
    return _render(
        "dashboard.html",
        {
            "title": f"{startup_name} - Dashboard",
            "startup": view.startup,
            "members": view.members,
            "members_json": [m.to_client() for m in view.members],
            "editable_members": view.editable_members,
            "current_member_id": view.current_member_id,
            "edit_policy": view.edit_policy,
            "token": view.token,
            "fields": fields or MemberFields(),
        },
    )


def render_invalid_link() -> str:
    return _render("invalid_link.html", {"title": "Invalid Link"})


def render_error(message: str) -> str:
    return _render("error.html", {"title": "Error", "message": message})


def render_home() -> str:
    return _render("home.html", {"title": "Startup Portal"})
