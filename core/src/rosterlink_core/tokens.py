from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Final

import jwt

from rosterlink_core.errors import TokenInvalid

ALGORITHM: Final[str] = "HS256"


@dataclass(frozen=True)
class SessionClaims:
    """Identity carried by a magic-link token."""

    startup_id: str
    startup_name: str
    email: str
    timestamp: int
    expires_at: datetime | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "startupId": self.startup_id,
            "startupName": self.startup_name,
            "email": self.email,
            "timestamp": self.timestamp,
        }

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> SessionClaims:
        try:
            startup_id = payload["startupId"]
            startup_name = payload["startupName"]
            email = payload["email"]
        except KeyError as exc:
            raise TokenInvalid(f"Token is missing claim {exc.args[0]!r}") from exc

        if not isinstance(startup_id, str) or not startup_id:
            raise TokenInvalid("Token has an invalid startupId claim")

        exp = payload.get("exp")
        return SessionClaims(
            startup_id=startup_id,
            startup_name=str(startup_name or ""),
            email=str(email or ""),
            timestamp=int(payload.get("timestamp") or 0),
            expires_at=datetime.fromtimestamp(exp, UTC) if exp is not None else None,
        )


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """Issues and verifies signed, time-limited magic-link tokens (JWT, HS256).

    Tokens are stateless: there is no revocation list, and a token stays valid
    until its `exp` claim passes.
    """

    def __init__(self, *, secret: str, ttl: timedelta) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty")
        if ttl <= timedelta(0):
            raise ValueError("Token ttl must be positive")
        self._secret = secret
        self._ttl = ttl

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def expires_at(self, now: datetime | None = None, *, ttl: timedelta | None = None) -> datetime:
        return (now or _utc_now()) + (ttl or self._ttl)

    def issue(
        self,
        claims: SessionClaims,
        *,
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> str:
        issued_at = now or _utc_now()
        payload = claims.to_payload()
        payload.update(
            {
                "iat": int(issued_at.timestamp()),
                "exp": self.expires_at(issued_at, ttl=ttl),
                # Two tokens issued within the same millisecond must still differ.
                "jti": secrets.token_urlsafe(12),
            }
        )
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        if not token:
            raise TokenInvalid()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.PyJWTError as exc:
            raise TokenInvalid() from exc
        return SessionClaims.from_payload(payload)
