"""Persistent reminder keyboard: buttons that survive bot restarts."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import discord
from discord.ui import Button, DynamicItem, View

from cadence_bot.commands import CommandName, is_owner, run_action
from cadence_bot.messages import (
    DISABLE_LABEL,
    ENABLE_LABEL,
    PUBLISHED_LABEL,
    interval_label,
    render_outcome,
)
from cadence_bot.records import PRESET_INTERVALS

if TYPE_CHECKING:
    from cadence_bot.scheduling import ReminderScheduler

# Buttons are reconstructed from custom_id on restart; module-level ref
# is the only way to reach the scheduler from DynamicItem.
_scheduler: ReminderScheduler | None = None

_ACTIONS: frozenset[str] = frozenset(
    {"enable", "disable", "acknowledge", "set_interval"}
)


def init(scheduler: ReminderScheduler) -> None:
    """Must be called before any button interaction is processed."""
    global _scheduler
    _scheduler = scheduler


def _custom_id(action: CommandName, data: str = "_") -> str:
    return f"cadence:{action}:{data}"


def reminder_keyboard() -> View:
    """Three rows: on/off, interval presets, published."""
    view = View(timeout=None)
    view.add_item(
        Button(
            label=ENABLE_LABEL,
            style=discord.ButtonStyle.success,
            custom_id=_custom_id("enable"),
            row=0,
        )
    )
    view.add_item(
        Button(
            label=DISABLE_LABEL,
            style=discord.ButtonStyle.secondary,
            custom_id=_custom_id("disable"),
            row=0,
        )
    )
    for minutes in PRESET_INTERVALS:
        view.add_item(
            Button(
                label=interval_label(minutes),
                style=discord.ButtonStyle.primary,
                custom_id=_custom_id("set_interval", str(minutes)),
                row=1,
            )
        )
    view.add_item(
        Button(
            label=PUBLISHED_LABEL,
            style=discord.ButtonStyle.success,
            custom_id=_custom_id("acknowledge"),
            row=2,
        )
    )
    return view


class ReminderButton(
    DynamicItem[Button], template=r"cadence:(?P<action>[a-z_]+):(?P<data>[0-9_]+)"
):
    def __init__(self, button: Button):
        super().__init__(button)
        self.action: str = ""
        self.data: str = ""

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: Button,
        match: re.Match[str],
    ) -> ReminderButton:
        inst = cls(item)
        inst.action = match.group("action")
        inst.data = match.group("data")
        return inst

    async def callback(self, interaction: discord.Interaction) -> None:
        if not is_owner(interaction.user.id):
            await interaction.response.send_message("not authorized", ephemeral=True)
            return
        if self.action not in _ACTIONS or interaction.channel_id is None:
            await interaction.response.send_message("unknown action", ephemeral=True)
            return
        assert _scheduler is not None
        await interaction.response.defer()
        outcome = await run_action(
            _scheduler,
            interaction.channel_id,
            self.action,  # type: ignore[arg-type]
            self.data if self.action == "set_interval" else None,
        )
        assert outcome is not None
        await interaction.followup.send(
            render_outcome(outcome), view=reminder_keyboard()
        )
