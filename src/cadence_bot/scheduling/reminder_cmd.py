"""CLI handler for `cadence-bot reminders` subcommand.

Read-only: live timers belong to the running bot process, so the CLI only
inspects stored records.
"""

import argparse
import asyncio
import sys

from cadence_bot.errors import StoreUnavailable
from cadence_bot.records import ReminderRecord
from cadence_bot.store import ReminderStore, open_store


def _fmt_record(r: ReminderRecord) -> str:
    state = "on " if r.active else "off"
    last = r.last_reminder[:16] if r.last_reminder else "never"
    return f"  {r.chat_id:<20d}  {state}  every {r.interval_minutes:>4d} min  last: {last}"


async def _close(store: ReminderStore) -> None:
    aclose = getattr(store, "aclose", None)
    if aclose is not None:
        await aclose()


async def _list(store: ReminderStore, active_only: bool) -> list[ReminderRecord]:
    try:
        return await (store.list_active() if active_only else store.list_all())
    finally:
        await _close(store)


async def _show(store: ReminderStore, chat_id: int) -> ReminderRecord | None:
    try:
        return await store.get_record(chat_id)
    finally:
        await _close(store)


def run_reminder_command(argv: list[str], store: ReminderStore | None = None) -> None:
    parser = argparse.ArgumentParser(prog="cadence-bot reminders")
    sub = parser.add_subparsers(dest="action")

    list_p = sub.add_parser("list", help="Show stored reminder records")
    list_p.add_argument("--active", action="store_true", help="Only active chats")

    show_p = sub.add_parser("show", help="Show one chat's record")
    show_p.add_argument("chat_id", type=int, help="Chat (channel) ID")

    args = parser.parse_args(argv)
    if args.action not in ("list", "show"):
        parser.print_help()
        sys.exit(1)

    store = store or open_store()
    try:
        if args.action == "list":
            _handle_list(asyncio.run(_list(store, args.active)))
        else:
            _handle_show(args.chat_id, asyncio.run(_show(store, args.chat_id)))
    except StoreUnavailable as e:
        print(f"store unavailable: {e}", file=sys.stderr)
        sys.exit(2)


def _handle_list(records: list[ReminderRecord]) -> None:
    if not records:
        print("no reminder records")
        return
    for r in records:
        print(_fmt_record(r))


def _handle_show(chat_id: int, record: ReminderRecord | None) -> None:
    if record is None:
        print(f"chat {chat_id} has no reminder record")
        sys.exit(1)
    print(_fmt_record(record))
    print(f"  created: {(record.created_at or 'unknown')[:16]}")
