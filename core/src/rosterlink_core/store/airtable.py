from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx

from rosterlink_core.errors import RecordNotFound, StoreError
from rosterlink_core.store.base import FieldEquals, Record

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.airtable.com/v0"


def _record_from_payload(payload: Mapping[str, Any]) -> Record:
    return Record(
        record_id=str(payload.get("id") or ""),
        fields=dict(payload.get("fields") or {}),
        created_time=payload.get("createdTime"),
    )


def _error_message(response: httpx.Response) -> str:
    # Airtable errors look like {"error": {"type": "...", "message": "..."}}
    # or {"error": "NOT_FOUND"}.
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:300]}"

    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        message = err.get("message") or err.get("type")
        if message:
            return str(message)
    if isinstance(err, str) and err:
        return err
    return f"HTTP {response.status_code}"


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise StoreError(
            f"Unexpected non-JSON response (HTTP {response.status_code}): {response.text[:300]}"
        ) from exc
    if not isinstance(body, dict):
        raise StoreError(f"Unexpected response body (HTTP {response.status_code})")
    return body


class AirtableRecordStore:
    """Record store backed by the Airtable REST API."""

    provider_name = "airtable"

    def __init__(
        self,
        *,
        api_key: str,
        base_id: str,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float | None = None,
        typecast: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_id = base_id
        self._typecast = typecast

        client_kwargs: dict[str, Any] = {
            "base_url": api_url.rstrip("/") + "/",
            "headers": {"Authorization": f"Bearer {api_key}"},
            "transport": transport,
        }
        if timeout_seconds is not None:
            client_kwargs["timeout"] = timeout_seconds
        self._client = httpx.AsyncClient(**client_kwargs)

    def _table_path(self, table: str) -> str:
        return f"{quote(self._base_id, safe='')}/{quote(table, safe='')}"

    def _record_path(self, table: str, record_id: str) -> str:
        return f"{self._table_path(table)}/{quote(record_id, safe='')}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Airtable %s %s failed: %s", method, path, exc)
            raise StoreError(str(exc) or exc.__class__.__name__) from exc
        return response

    async def find_by_filter(
        self, table: str, criteria: FieldEquals, *, max_records: int | None = None
    ) -> list[Record]:
        try:
            formula = criteria.to_formula()
        except ValueError as exc:
            raise StoreError(str(exc)) from exc

        params: dict[str, Any] = {"filterByFormula": formula}
        if max_records is not None:
            params["maxRecords"] = max_records

        records: list[Record] = []
        while True:
            response = await self._request("GET", self._table_path(table), params=params)
            if response.status_code >= 400:
                raise StoreError(_error_message(response))

            body = _json_body(response)
            records.extend(_record_from_payload(r) for r in body.get("records") or [])

            offset = body.get("offset")
            if not offset:
                break
            if max_records is not None and len(records) >= max_records:
                break
            params["offset"] = offset

        if max_records is not None:
            records = records[:max_records]
        return records

    async def find_by_id(self, table: str, record_id: str) -> Record:
        response = await self._request("GET", self._record_path(table, record_id))
        if response.status_code == 404:
            raise RecordNotFound(table, record_id)
        if response.status_code >= 400:
            raise StoreError(_error_message(response))
        return _record_from_payload(_json_body(response))

    async def update(self, table: str, record_id: str, fields: Mapping[str, Any]) -> Record:
        payload: dict[str, Any] = {"fields": dict(fields)}
        if self._typecast:
            payload["typecast"] = True

        response = await self._request(
            "PATCH", self._record_path(table, record_id), json=payload
        )
        if response.status_code == 404:
            raise RecordNotFound(table, record_id)
        if response.status_code >= 400:
            raise StoreError(_error_message(response))
        return _record_from_payload(_json_body(response))

    async def aclose(self) -> None:
        await self._client.aclose()
