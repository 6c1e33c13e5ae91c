from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from rosterlink_core.app import create_app
from rosterlink_core.config import CoreConfig
from rosterlink_core.store.memory import InMemoryRecordStore

SECRET = "test-signing-secret"
STARTUPS = "UTS Startups"
MEMBERS = "Team members"


def make_config(**auth: Any) -> CoreConfig:
    return CoreConfig.model_validate(
        {
            "store": {"backend": "memory"},
            "auth": {"token_secret": SECRET, **auth},
        }
    )


def _member(name: str, email: str, startup: str | None, **extra: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "Team member ID": name,
        "Personal email*": email,
        "Mobile*": "0400 000 000",
        "Position at startup*": "Engineer",
        "What is your association to UTS?*": "Alumni",
        "Team Member Status": "Active",
    }
    if startup is not None:
        fields["Startup*"] = startup
    fields.update(extra)
    return fields


def seed_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        {
            STARTUPS: [
                {
                    "id": "recAcme",
                    "fields": {
                        "Startup Name (or working title)": "Acme",
                        "Primary contact email": "founder@acme.io",
                        "Startup status": "Active",
                    },
                },
                {
                    "id": "recBeta",
                    "fields": {
                        "Startup Name (or working title)": "Beta Labs",
                        "Primary contact email": "boss@beta.io",
                    },
                },
            ],
            MEMBERS: [
                {"id": "recAlice", "fields": _member("Alice", "a@x.com", "Acme")},
                {"id": "recBob", "fields": _member("Bob", "bob@acme.io", "Acme")},
                {"id": "recCarol", "fields": _member("Carol", "carol@beta.io", "Beta Labs")},
                {"id": "recDan", "fields": _member("Dan", "orphan@x.com", "")},
                {"id": "recEve", "fields": _member("Eve", "eve@gone.io", "Gone Inc")},
            ],
        }
    )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return seed_store()


@pytest.fixture
def client(store: InMemoryRecordStore) -> Iterator[TestClient]:
    with TestClient(create_app(make_config(), store=store)) as c:
        yield c


def lookup_token(client: TestClient, email: str) -> str:
    r = client.post("/lookup-email", json={"email": email})
    assert r.status_code == 200, r.text
    return r.json()["redirectUrl"].rsplit("/", 1)[-1]
