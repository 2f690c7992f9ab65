"""Map user input (text, slash commands, buttons) onto scheduler operations."""

from __future__ import annotations

from typing import Literal, NamedTuple

from cadence_bot.messages import (
    DISABLE_LABEL,
    ENABLE_LABEL,
    PUBLISHED_LABEL,
    interval_label,
)
from cadence_bot.records import PRESET_INTERVALS
from cadence_bot.scheduling import Outcome, ReminderScheduler

CommandName = Literal["start", "enable", "disable", "acknowledge", "set_interval"]


class TextCommand(NamedTuple):
    name: CommandName
    minutes: str | None = None  # raw argument; validated by the scheduler


_EXACT: dict[str, TextCommand] = {
    "/start": TextCommand("start"),
    "/help": TextCommand("start"),
    "/remind": TextCommand("enable"),
    ENABLE_LABEL: TextCommand("enable"),
    "/stop": TextCommand("disable"),
    DISABLE_LABEL: TextCommand("disable"),
    "/published": TextCommand("acknowledge"),
    PUBLISHED_LABEL: TextCommand("acknowledge"),
    **{
        interval_label(m): TextCommand("set_interval", str(m))
        for m in PRESET_INTERVALS
    },
}


def parse_text_command(text: str) -> TextCommand | None:
    """Returns None for text that isn't a command (caller shows the keyboard)."""
    text = text.strip()
    if text in _EXACT:
        return _EXACT[text]
    parts = text.split()
    if parts and parts[0] == "/interval":
        return TextCommand("set_interval", parts[1] if len(parts) > 1 else "")
    return None


async def run_action(
    scheduler: ReminderScheduler,
    chat_id: int,
    name: CommandName,
    minutes: object = None,
) -> Outcome | None:
    """One scheduler call per command. `start` has no state change and returns None."""
    if name == "enable":
        return await scheduler.enable(chat_id)
    if name == "disable":
        return await scheduler.disable(chat_id)
    if name == "acknowledge":
        return await scheduler.acknowledge(chat_id)
    if name == "set_interval":
        return await scheduler.set_interval(chat_id, minutes)
    return None


# --- owner guard ---

_owner_id: int | None = None


def set_owner_id(owner_id: int | None) -> None:
    global _owner_id
    _owner_id = owner_id


def is_owner(user_id: int) -> bool:
    """Check if user is the bot owner. Allows all when owner not yet resolved."""
    return _owner_id is None or user_id == _owner_id
