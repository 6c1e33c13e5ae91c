from __future__ import annotations

import json
import os
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from rosterlink_core.errors import ConfigError

CONFIG_PATH_ENV = "ROSTERLINK_CONFIG"


class EditPolicy(StrEnum):
    """Which team members a dashboard token may edit."""

    SELF_ONLY = "self_only"
    ANY_MEMBER = "any_member"


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    public_base_url: str | None = Field(
        default=None,
        description=(
            "Base URL used when building magic links, e.g. https://portal.example.org. "
            "If omitted, derived from the incoming request."
        ),
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class StartupFields(BaseModel):
    name: str = Field(default="Startup Name (or working title)")
    primary_email: str = Field(default="Primary contact email")
    status: str = Field(default="Startup status")
    record_number: str = Field(default="Record ID")
    link_fields: list[str] = Field(
        default_factory=lambda: ["Magic Link", "Link"],
        description="Every field listed here receives the latest magic link.",
    )
    link_expires_at: str = Field(default="Token Expires At")


class MemberFields(BaseModel):
    name: str = Field(default="Team member ID")
    email: str = Field(default="Personal email*")
    mobile: str = Field(default="Mobile*")
    position: str = Field(default="Position at startup*")
    association: str = Field(default="What is your association to UTS?*")
    status: str = Field(default="Team Member Status")
    startup: str = Field(default="Startup*", description="Backlink to the owning startup (by name)")


class StoreSchema(BaseModel):
    startups_table: str = Field(default="UTS Startups")
    members_table: str = Field(default="Team members")
    startup: StartupFields = Field(default_factory=StartupFields)
    member: MemberFields = Field(default_factory=MemberFields)


class StoreConfig(BaseModel):
    backend: Literal["airtable", "memory"] = Field(default="airtable")
    api_key: str | None = Field(default=None)
    base_id: str | None = Field(default=None)
    api_url: str = Field(default="https://api.airtable.com/v0")
    timeout_seconds: float | None = Field(
        default=None, gt=0, description="If omitted, the HTTP client default applies."
    )
    typecast: bool = Field(default=False)
    seed_path: str | None = Field(
        default=None,
        description="JSON file used to seed the in-memory backend (dev/testing only).",
    )
    layout: StoreSchema = Field(default_factory=StoreSchema)


class AuthConfig(BaseModel):
    token_secret: str | None = Field(default=None)
    token_ttl_minutes: int = Field(
        default=15, ge=1, description="Magic link lifetime; 10080 gives the 7-day variant."
    )
    edit_policy: EditPolicy = Field(default=EditPolicy.ANY_MEMBER)
    editable_fields: list[str] | None = Field(
        default=None,
        description="Optional allow-list of member fields the update endpoint accepts.",
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    file: str | None = Field(default=None, description="Optional rotating log file path.")
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class CoreConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _env_overrides(env: Mapping[str, str]) -> dict[str, dict[str, Any]]:
    def get(name: str) -> str | None:
        raw = (env.get(name) or "").strip()
        return raw or None

    overrides: dict[str, dict[str, Any]] = {
        "network": {},
        "store": {},
        "auth": {},
        "logging": {},
    }
    mapping: list[tuple[str, str, str]] = [
        ("AIRTABLE_API_KEY", "store", "api_key"),
        ("AIRTABLE_BASE_ID", "store", "base_id"),
        ("ROSTERLINK_STORE_BACKEND", "store", "backend"),
        ("ROSTERLINK_SEED_PATH", "store", "seed_path"),
        ("JWT_SECRET", "auth", "token_secret"),
        ("ROSTERLINK_TOKEN_TTL_MINUTES", "auth", "token_ttl_minutes"),
        ("ROSTERLINK_EDIT_POLICY", "auth", "edit_policy"),
        ("PORT", "network", "port"),
        ("ROSTERLINK_BIND", "network", "bind_host"),
        ("ROSTERLINK_PUBLIC_BASE_URL", "network", "public_base_url"),
        ("ROSTERLINK_LOG_FILE", "logging", "file"),
        ("ROSTERLINK_LOG_LEVEL", "logging", "level"),
    ]
    for env_name, section, key in mapping:
        value = get(env_name)
        if value is not None:
            overrides[section][key] = value
    return overrides


def load_core_config(environ: Mapping[str, str] | None = None) -> CoreConfig:
    """Load config from the optional JSON file named by ROSTERLINK_CONFIG, then
    apply environment overrides (AIRTABLE_API_KEY, JWT_SECRET, PORT, ...).

    - If no file is configured: starts from defaults.
    - Validation is performed by Pydantic.
    """

    env = os.environ if environ is None else environ

    raw: dict[str, Any] = {}
    config_path = (env.get(CONFIG_PATH_ENV) or "").strip()
    if config_path:
        raw = _read_json(Path(config_path).expanduser())

    for section, values in _env_overrides(env).items():
        if not values:
            continue
        merged = dict(raw.get(section) or {})
        merged.update(values)
        raw[section] = merged

    return CoreConfig.model_validate(raw)


def require_runtime_settings(config: CoreConfig) -> None:
    """Fail fast on settings the service cannot run without."""

    if not (config.auth.token_secret or "").strip():
        raise ConfigError("Token signing secret is not configured (set JWT_SECRET)")

    if config.store.backend == "airtable":
        if not (config.store.api_key or "").strip():
            raise ConfigError("Airtable API key is not configured (set AIRTABLE_API_KEY)")
        if not (config.store.base_id or "").strip():
            raise ConfigError("Airtable base id is not configured (set AIRTABLE_BASE_ID)")
