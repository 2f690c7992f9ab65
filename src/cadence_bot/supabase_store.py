"""Supabase (PostgREST) persistence for reminder records.

Expects the `reminders` table from schema.sql: chat_id is unique, and the
column defaults (active=false, interval_minutes=60, created_at=now()) fill in
rows created through upsert.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cadence_bot.errors import DuplicateKey, NotFound, StoreUnavailable
from cadence_bot.records import ReminderRecord, check_fields
from cadence_bot.store import parse_row, parse_rows

log = logging.getLogger(__name__)

TABLE = "reminders"
_TIMEOUT = 10


class SupabaseReminderStore:
    def __init__(
        self,
        url: str,
        key: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
                "Prefer": "return=representation",
            },
            timeout=_TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method, f"/{TABLE}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"Supabase {method} failed: {e}") from e

    @staticmethod
    def _rows(response: httpx.Response) -> list[dict[str, Any]]:
        try:
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            raise StoreUnavailable(f"Supabase error: {e}") from e
        if not isinstance(rows, list):
            raise StoreUnavailable(f"Unexpected Supabase payload: {rows!r}")
        return rows

    async def get_record(self, chat_id: int) -> ReminderRecord | None:
        response = await self._request(
            "GET", params={"chat_id": f"eq.{chat_id}", "select": "*"}
        )
        rows = self._rows(response)
        return parse_row(rows[0]) if rows else None

    async def list_all(self) -> list[ReminderRecord]:
        response = await self._request(
            "GET", params={"select": "*", "order": "chat_id"}
        )
        return parse_rows(self._rows(response))

    async def list_active(self) -> list[ReminderRecord]:
        response = await self._request(
            "GET", params={"active": "is.true", "select": "*", "order": "chat_id"}
        )
        return parse_rows(self._rows(response))

    async def insert(self, record: ReminderRecord) -> None:
        row = {k: v for k, v in record.to_row().items() if v is not None and v != ""}
        response = await self._request("POST", json=[row])
        if response.status_code == 409:
            raise DuplicateKey(f"chat {record.chat_id} already has a record")
        self._rows(response)
        log.debug("inserted reminder record for chat %s", record.chat_id)

    async def upsert(self, chat_id: int, **fields: Any) -> ReminderRecord:
        fields = check_fields(fields)
        response = await self._request(
            "POST",
            params={"on_conflict": "chat_id"},
            json=[{"chat_id": chat_id, **fields}],
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        rows = self._rows(response)
        if not rows:
            raise StoreUnavailable(f"Supabase upsert for chat {chat_id} returned nothing")
        return parse_row(rows[0])

    async def update(self, chat_id: int, **fields: Any) -> ReminderRecord:
        fields = check_fields(fields)
        response = await self._request(
            "PATCH", params={"chat_id": f"eq.{chat_id}"}, json=fields
        )
        rows = self._rows(response)
        if not rows:
            raise NotFound(f"no reminder record for chat {chat_id}")
        return parse_row(rows[0])
