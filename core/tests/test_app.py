from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from conftest import SECRET, make_config, seed_store
from rosterlink_core.app import create_app
from rosterlink_core.config import CoreConfig
from rosterlink_core.errors import ConfigError


def test_healthz_ok(client: TestClient) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_home_page_and_stylesheet(client: TestClient) -> None:
    home = client.get("/")
    assert home.status_code == 200
    assert "/lookup-email" in home.text

    css = client.get("/static/styles.css")
    assert css.status_code == 200
    assert ".team-member" in css.text


def test_unknown_route_returns_json_envelope(client: TestClient) -> None:
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_startup_fails_without_signing_secret() -> None:
    config = CoreConfig.model_validate({"store": {"backend": "memory"}})
    with pytest.raises(ConfigError):
        with TestClient(create_app(config, store=seed_store())):
            pass


def test_public_base_url_is_used_for_links() -> None:
    config = make_config()
    config.network.public_base_url = "https://portal.example.org/"
    with TestClient(create_app(config, store=seed_store())) as client:
        r = client.post("/lookup-email", json={"email": "founder@acme.io"})
        assert r.status_code == 200
        assert r.json()["redirectUrl"].startswith("https://portal.example.org/dashboard/")


def test_app_from_environment_with_seeded_memory_store(tmp_path: Path, monkeypatch) -> None:
    seed = tmp_path / "seed.json"
    seed.write_text(
        json.dumps(
            {
                "tables": {
                    "UTS Startups": [
                        {
                            "id": "recAcme",
                            "fields": {
                                "Startup Name (or working title)": "Acme",
                                "Primary contact email": "founder@acme.io",
                            },
                        }
                    ],
                    "Team members": [],
                }
            }
        ),
        encoding="utf-8",
    )
    log_file = tmp_path / "logs" / "rosterlink.log"
    monkeypatch.setenv("JWT_SECRET", SECRET)
    monkeypatch.setenv("ROSTERLINK_STORE_BACKEND", "memory")
    monkeypatch.setenv("ROSTERLINK_SEED_PATH", str(seed))
    monkeypatch.setenv("ROSTERLINK_LOG_FILE", str(log_file))

    with TestClient(create_app()) as client:
        r = client.post("/lookup-email", json={"email": "founder@acme.io"})
        assert r.status_code == 200
        token = r.json()["redirectUrl"].rsplit("/", 1)[-1]

        dash = client.get(f"/dashboard/{token}")
        assert dash.status_code == 200
        assert "0 members" in dash.text

    assert log_file.exists()

    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, RotatingFileHandler)]:
        root.removeHandler(handler)
        handler.close()


def test_cors_origins_from_config_file(tmp_path: Path, monkeypatch) -> None:
    config_file = tmp_path / "rosterlink.json"
    config_file.write_text(
        json.dumps({"network": {"cors_origins": ["https://portal.example.org"]}}),
        encoding="utf-8",
    )
    monkeypatch.setenv("ROSTERLINK_CONFIG", str(config_file))
    monkeypatch.setenv("JWT_SECRET", SECRET)
    monkeypatch.setenv("ROSTERLINK_STORE_BACKEND", "memory")

    with TestClient(create_app(store=seed_store())) as client:
        allowed = client.get("/healthz", headers={"Origin": "https://portal.example.org"})
        assert allowed.headers["access-control-allow-origin"] == "https://portal.example.org"

        denied = client.get("/healthz", headers={"Origin": "https://evil.example"})
        assert denied.status_code == 200
        assert "access-control-allow-origin" not in denied.headers
