#!/usr/bin/env python3
"""One-time migration: copy reminders.json records into the Supabase table."""

import asyncio

from cadence_bot import config
from cadence_bot.errors import DuplicateKey
from cadence_bot.store import REMINDERS_FILE, FileReminderStore
from cadence_bot.supabase_store import SupabaseReminderStore


async def migrate() -> None:
    if not (config.SUPABASE_URL and config.SUPABASE_KEY):
        raise SystemExit("Set SUPABASE_URL and SUPABASE_KEY first")

    source = FileReminderStore(REMINDERS_FILE)
    target = SupabaseReminderStore(config.SUPABASE_URL, config.SUPABASE_KEY)
    copied = skipped = 0
    try:
        for record in await source.list_all():
            try:
                await target.insert(record)
            except DuplicateKey:
                skipped += 1
                print(f"  skipped chat {record.chat_id}: already in Supabase")
                continue
            copied += 1
            print(f"  migrated chat {record.chat_id} (active={record.active})")
    finally:
        await target.aclose()
    print(f"Migrated {copied} records to Supabase ({skipped} already present)")


if __name__ == "__main__":
    asyncio.run(migrate())
