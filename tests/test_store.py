"""Tests for store.py — JSON file reminder store and backend selection."""

import asyncio
import json

import pytest

import cadence_bot.config as config_mod
from cadence_bot.errors import DuplicateKey, NotFound, StoreUnavailable
from cadence_bot.records import ReminderRecord
from cadence_bot.store import FileReminderStore, open_store


@pytest.mark.asyncio
async def test_get_record_missing_file(data_dir):
    store = FileReminderStore()

    assert await store.get_record(1) is None
    assert await store.list_all() == []


@pytest.mark.asyncio
async def test_insert_then_get(data_dir):
    store = FileReminderStore()
    record = ReminderRecord.new(1, active=True, interval_minutes=30)

    await store.insert(record)

    assert await store.get_record(1) == record
    raw = json.loads((data_dir / "reminders.json").read_text())
    assert raw["1"]["interval_minutes"] == 30


@pytest.mark.asyncio
async def test_insert_duplicate_raises(data_dir):
    store = FileReminderStore()
    await store.insert(ReminderRecord.new(1))

    with pytest.raises(DuplicateKey):
        await store.insert(ReminderRecord.new(1, interval_minutes=90))

    assert (await store.get_record(1)).interval_minutes == 60


@pytest.mark.asyncio
async def test_upsert_creates_inactive_record(data_dir):
    store = FileReminderStore()

    record = await store.upsert(5, interval_minutes=15)

    assert record.active is False
    assert record.interval_minutes == 15
    assert record.created_at
    assert await store.get_record(5) == record


@pytest.mark.asyncio
async def test_upsert_keeps_other_fields(data_dir):
    store = FileReminderStore()
    await store.insert(ReminderRecord.new(5, active=True))

    record = await store.upsert(5, interval_minutes=15)

    assert record.active is True
    assert record.interval_minutes == 15


@pytest.mark.asyncio
async def test_update_missing_raises_not_found(data_dir):
    store = FileReminderStore()

    with pytest.raises(NotFound):
        await store.update(1, active=False)

    assert not (data_dir / "reminders.json").exists()


@pytest.mark.asyncio
async def test_update_rejects_unknown_field(data_dir):
    store = FileReminderStore()
    await store.insert(ReminderRecord.new(1))

    with pytest.raises(ValueError):
        await store.update(1, chat_id=2)


@pytest.mark.asyncio
async def test_list_active_filters_and_sorts(data_dir):
    store = FileReminderStore()
    await store.insert(ReminderRecord.new(30, active=True))
    await store.insert(ReminderRecord.new(10, active=True))
    await store.insert(ReminderRecord.new(20, active=False))

    active = await store.list_active()
    everything = await store.list_all()

    assert [r.chat_id for r in active] == [10, 30]
    assert [r.chat_id for r in everything] == [10, 20, 30]


@pytest.mark.asyncio
async def test_corrupt_row_skipped_in_listing(data_dir):
    (data_dir / "reminders.json").write_text(
        json.dumps(
            {
                "1": {"chat_id": 1, "active": True, "interval_minutes": 30},
                "2": {"chat_id": 2, "active": True, "interval_minutes": 2},
                "3": {"active": True},
            }
        )
    )
    store = FileReminderStore()

    active = await store.list_active()

    assert [r.chat_id for r in active] == [1]
    with pytest.raises(StoreUnavailable):
        await store.get_record(2)


@pytest.mark.asyncio
async def test_unreadable_file_raises_store_unavailable(data_dir):
    (data_dir / "reminders.json").write_text("[1, 2")
    store = FileReminderStore()

    with pytest.raises(StoreUnavailable):
        await store.list_active()


@pytest.mark.asyncio
async def test_non_object_file_raises_store_unavailable(data_dir):
    (data_dir / "reminders.json").write_text("[]")
    store = FileReminderStore()

    with pytest.raises(StoreUnavailable):
        await store.get_record(1)


@pytest.mark.asyncio
async def test_concurrent_upserts_for_different_chats_all_persist(data_dir):
    store = FileReminderStore()

    await asyncio.gather(*(store.upsert(c, interval_minutes=10) for c in range(15)))

    assert len(await store.list_all()) == 15


def test_open_store_defaults_to_file(data_dir, monkeypatch):
    monkeypatch.setattr(config_mod, "SUPABASE_URL", None)
    monkeypatch.setattr(config_mod, "SUPABASE_KEY", None)

    store = open_store()

    assert isinstance(store, FileReminderStore)
    assert store.path == data_dir / "reminders.json"


def test_open_store_needs_both_supabase_settings(data_dir, monkeypatch):
    monkeypatch.setattr(config_mod, "SUPABASE_URL", "https://x.supabase.co")
    monkeypatch.setattr(config_mod, "SUPABASE_KEY", None)

    assert isinstance(open_store(), FileReminderStore)


@pytest.mark.asyncio
async def test_open_store_uses_supabase_when_configured(data_dir, monkeypatch):
    from cadence_bot.supabase_store import SupabaseReminderStore

    monkeypatch.setattr(config_mod, "SUPABASE_URL", "https://x.supabase.co")
    monkeypatch.setattr(config_mod, "SUPABASE_KEY", "service-key")

    store = open_store()

    assert isinstance(store, SupabaseReminderStore)
    await store.aclose()
