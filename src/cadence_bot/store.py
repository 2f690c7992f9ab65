"""Reminder record stores: the protocol the scheduler consumes and a JSON file backend.

The file backend keeps every chat's record in one JSON object keyed by chat id.
All read-modify-write cycles run under a single asyncio.Lock so concurrent
commands for different chats cannot lose each other's writes.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Protocol

from cadence_bot import config
from cadence_bot.errors import DuplicateKey, InvalidInterval, NotFound, StoreUnavailable
from cadence_bot.records import ReminderRecord, check_fields
from cadence_bot.storage import DATA_DIR, read_json, write_json

log = logging.getLogger(__name__)

REMINDERS_FILE = DATA_DIR / "reminders.json"


class ReminderStore(Protocol):
    """Durable table of reminder records keyed by chat id.

    Every method raises StoreUnavailable when the backend cannot be reached.
    """

    async def get_record(self, chat_id: int) -> ReminderRecord | None: ...

    async def list_active(self) -> list[ReminderRecord]: ...

    async def list_all(self) -> list[ReminderRecord]: ...

    async def insert(self, record: ReminderRecord) -> None:
        """Raises DuplicateKey if the chat already has a record."""
        ...

    async def upsert(self, chat_id: int, **fields: Any) -> ReminderRecord:
        """Create-or-update; new records start inactive at the default interval."""
        ...

    async def update(self, chat_id: int, **fields: Any) -> ReminderRecord:
        """Raises NotFound if the chat has no record."""
        ...


def parse_row(row: dict[str, Any]) -> ReminderRecord:
    """Translate a malformed stored row into StoreUnavailable."""
    try:
        return ReminderRecord.from_row(row)
    except (InvalidInterval, KeyError, TypeError, ValueError) as e:
        raise StoreUnavailable(f"corrupt reminder row {row!r}: {e}") from e


def parse_rows(rows: list[dict[str, Any]]) -> list[ReminderRecord]:
    """Skips corrupt rows so one bad record cannot block the rest."""
    result: list[ReminderRecord] = []
    for row in rows:
        try:
            result.append(parse_row(row))
        except StoreUnavailable:
            log.warning("Skipping corrupt reminder row: %r", row)
    return result


class FileReminderStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or REMINDERS_FILE
        self._lock = asyncio.Lock()

    def _load(self) -> dict[str, dict[str, Any]]:
        try:
            data = read_json(self.path, {})
        except (OSError, json.JSONDecodeError) as e:
            raise StoreUnavailable(f"cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreUnavailable(f"{self.path} is not a JSON object")
        return data

    def _save(self, data: dict[str, dict[str, Any]]) -> None:
        try:
            write_json(self.path, data)
        except OSError as e:
            raise StoreUnavailable(f"cannot write {self.path}: {e}") from e

    async def get_record(self, chat_id: int) -> ReminderRecord | None:
        async with self._lock:
            row = self._load().get(str(chat_id))
        return parse_row(row) if row is not None else None

    async def list_all(self) -> list[ReminderRecord]:
        async with self._lock:
            rows = list(self._load().values())
        return sorted(parse_rows(rows), key=lambda r: r.chat_id)

    async def list_active(self) -> list[ReminderRecord]:
        return [r for r in await self.list_all() if r.active]

    async def insert(self, record: ReminderRecord) -> None:
        async with self._lock:
            data = self._load()
            key = str(record.chat_id)
            if key in data:
                raise DuplicateKey(f"chat {record.chat_id} already has a record")
            data[key] = record.to_row()
            self._save(data)
        log.debug("inserted reminder record for chat %s", record.chat_id)

    async def upsert(self, chat_id: int, **fields: Any) -> ReminderRecord:
        fields = check_fields(fields)
        async with self._lock:
            data = self._load()
            key = str(chat_id)
            current = (
                parse_row(data[key]) if key in data else ReminderRecord.new(chat_id)
            )
            record = replace(current, **fields)
            data[key] = record.to_row()
            self._save(data)
        return record

    async def update(self, chat_id: int, **fields: Any) -> ReminderRecord:
        fields = check_fields(fields)
        async with self._lock:
            data = self._load()
            key = str(chat_id)
            if key not in data:
                raise NotFound(f"no reminder record for chat {chat_id}")
            record = replace(parse_row(data[key]), **fields)
            data[key] = record.to_row()
            self._save(data)
        return record


def open_store() -> ReminderStore:
    """Supabase when both credentials are configured, else the local JSON file."""
    if config.SUPABASE_URL and config.SUPABASE_KEY:
        from cadence_bot.supabase_store import SupabaseReminderStore

        log.info("Using Supabase reminder store at %s", config.SUPABASE_URL)
        return SupabaseReminderStore(config.SUPABASE_URL, config.SUPABASE_KEY)
    if config.SUPABASE_URL or config.SUPABASE_KEY:
        log.warning("Only one of SUPABASE_URL/SUPABASE_KEY set; using file store")
    log.info("Using file reminder store at %s", REMINDERS_FILE)
    return FileReminderStore(REMINDERS_FILE)
