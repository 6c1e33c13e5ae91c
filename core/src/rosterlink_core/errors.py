from __future__ import annotations


class ConfigError(RuntimeError):
    """Unrecoverable startup misconfiguration (missing secret, store credentials)."""


class PortalError(Exception):
    """Base class for errors raised by the lookup/dashboard/update flows.

    Each subclass carries the HTTP status the route layer maps it to.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequest(PortalError):
    status_code = 400


class Forbidden(PortalError):
    status_code = 403


class NotFound(PortalError):
    status_code = 404


class TokenInvalid(PortalError):
    status_code = 401

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class StoreError(PortalError):
    """Any failure reported by the record store; the message is passed through."""

    status_code = 500


class RecordNotFound(StoreError):
    def __init__(self, table: str, record_id: str) -> None:
        super().__init__(f"Record {record_id!r} not found in table {table!r}")
        self.table = table
        self.record_id = record_id
