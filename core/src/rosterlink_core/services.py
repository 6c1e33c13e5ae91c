from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from rosterlink_core.config import CoreConfig, StoreSchema
from rosterlink_core.store import RecordStore, build_record_store
from rosterlink_core.tokens import TokenService


@dataclass(frozen=True)
class PortalServices:
    """Everything a flow needs, built once at startup and passed in explicitly."""

    config: CoreConfig
    store: RecordStore
    tokens: TokenService

    @property
    def layout(self) -> StoreSchema:
        return self.config.store.layout


def build_token_service(config: CoreConfig) -> TokenService:
    return TokenService(
        secret=(config.auth.token_secret or "").strip(),
        ttl=timedelta(minutes=config.auth.token_ttl_minutes),
    )


def build_portal_services(
    config: CoreConfig, *, store: RecordStore | None = None
) -> PortalServices:
    return PortalServices(
        config=config,
        store=store if store is not None else build_record_store(config),
        tokens=build_token_service(config),
    )
