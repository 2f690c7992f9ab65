"""Shared fixtures for cadence-bot tests."""

import os

os.environ.setdefault("DISCORD_TOKEN", "test-token")
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_KEY", None)

import asyncio
import contextlib
from dataclasses import replace

import pytest

from cadence_bot.errors import DuplicateKey, NotFound, StoreUnavailable
from cadence_bot.records import ReminderRecord, check_fields
from cadence_bot.scheduling import ReminderScheduler


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    """Redirect all data file paths to a temp directory."""
    import cadence_bot.storage as storage_mod
    import cadence_bot.store as store_mod

    monkeypatch.setattr(storage_mod, "DATA_DIR", tmp_path)
    monkeypatch.setattr(storage_mod, "STATE_DIR", tmp_path / "state")
    monkeypatch.setattr(store_mod, "REMINDERS_FILE", tmp_path / "reminders.json")
    return tmp_path


class MemoryStore:
    """Dict-backed ReminderStore with per-method failure injection.

    Every call yields to the event loop once, as a network store would.
    """

    def __init__(self, *records: ReminderRecord) -> None:
        self.rows: dict[int, ReminderRecord] = {r.chat_id: r for r in records}
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    async def _enter(self, method: str) -> None:
        self.calls.append(method)
        # Suspend like a real backend so concurrent commands interleave
        await asyncio.sleep(0)
        if method in self.fail_on:
            raise StoreUnavailable(f"{method} failed (injected)")

    async def get_record(self, chat_id):
        await self._enter("get_record")
        return self.rows.get(chat_id)

    async def list_all(self):
        await self._enter("list_all")
        return sorted(self.rows.values(), key=lambda r: r.chat_id)

    async def list_active(self):
        await self._enter("list_active")
        return [r for r in self.rows.values() if r.active]

    async def insert(self, record):
        await self._enter("insert")
        if record.chat_id in self.rows:
            raise DuplicateKey(str(record.chat_id))
        self.rows[record.chat_id] = record

    async def upsert(self, chat_id, **fields):
        await self._enter("upsert")
        fields = check_fields(fields)
        current = self.rows.get(chat_id) or ReminderRecord.new(chat_id)
        self.rows[chat_id] = replace(current, **fields)
        return self.rows[chat_id]

    async def update(self, chat_id, **fields):
        await self._enter("update")
        fields = check_fields(fields)
        if chat_id not in self.rows:
            raise NotFound(str(chat_id))
        self.rows[chat_id] = replace(self.rows[chat_id], **fields)
        return self.rows[chat_id]


class Deliveries:
    """Recording delivery callback; set `fail` to make every send raise."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, int]] = []
        self.fail = False

    async def __call__(self, chat_id: int, interval_minutes: int) -> None:
        if self.fail:
            raise ConnectionError("discord unreachable")
        self.sent.append((chat_id, interval_minutes))


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def deliveries():
    return Deliveries()


@pytest.fixture()
def reminders(store, deliveries):
    return ReminderScheduler(store, deliveries)


@contextlib.asynccontextmanager
async def running(scheduler: ReminderScheduler):
    """Start APScheduler inside the test's event loop; always shut it down."""
    scheduler.start()
    try:
        yield scheduler
    finally:
        scheduler.shutdown()
