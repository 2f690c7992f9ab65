"""Discord transport: slash commands, text commands, buttons, and reminder delivery."""

from __future__ import annotations

import logging

import discord
from discord.ext import commands

from cadence_bot import config, health
from cadence_bot.commands import (
    is_owner,
    parse_text_command,
    run_action,
    set_owner_id,
)
from cadence_bot.errors import StoreUnavailable
from cadence_bot.messages import HELP, WELCOME, reminder_text, render_outcome, render_status
from cadence_bot.scheduling import Outcome, ReminderScheduler
from cadence_bot.scheduling.scheduler import Deliver
from cadence_bot.store import ReminderStore
from cadence_bot.views import ReminderButton, reminder_keyboard
from cadence_bot.views import init as init_views

log = logging.getLogger(__name__)


def _owner_check(interaction: discord.Interaction) -> bool:
    return is_owner(interaction.user.id)


def make_deliver(bot: discord.Client) -> Deliver:
    """Build the delivery callback handed to the scheduler's ticks."""

    async def deliver_reminder(chat_id: int, interval_minutes: int) -> None:
        channel = bot.get_channel(chat_id) or await bot.fetch_channel(chat_id)
        if not isinstance(channel, discord.abc.Messageable):
            raise TypeError(f"channel {chat_id} cannot receive messages")
        await channel.send(reminder_text(interval_minutes), view=reminder_keyboard())

    return deliver_reminder


def create_bot(store: ReminderStore) -> tuple[commands.Bot, ReminderScheduler]:
    """Returns the bot and the scheduler it drives; main owns shutdown of both."""
    intents = discord.Intents.default()
    intents.message_content = True

    bot = commands.Bot(
        command_prefix="!",
        intents=intents,
        status=discord.Status.online,
        activity=discord.Activity(
            type=discord.ActivityType.watching, name="the publishing clock"
        ),
    )
    reminders = ReminderScheduler(store, make_deliver(bot))
    _ready_fired = False

    async def _reply(interaction: discord.Interaction, outcome: Outcome) -> None:
        await interaction.response.send_message(
            render_outcome(outcome), view=reminder_keyboard()
        )

    @bot.tree.command(name="start", description="Show the reminder keyboard")
    @discord.app_commands.check(_owner_check)
    async def slash_start(interaction: discord.Interaction):
        await interaction.response.send_message(
            f"{WELCOME}\n\n{HELP}", view=reminder_keyboard()
        )

    @bot.tree.command(name="remind", description="Turn publication reminders on")
    @discord.app_commands.check(_owner_check)
    async def slash_remind(interaction: discord.Interaction):
        assert interaction.channel_id is not None
        await _reply(interaction, await reminders.enable(interaction.channel_id))

    @bot.tree.command(name="stop", description="Turn publication reminders off")
    @discord.app_commands.check(_owner_check)
    async def slash_stop(interaction: discord.Interaction):
        assert interaction.channel_id is not None
        await _reply(interaction, await reminders.disable(interaction.channel_id))

    @bot.tree.command(name="published", description="Mark the publication done")
    @discord.app_commands.check(_owner_check)
    async def slash_published(interaction: discord.Interaction):
        assert interaction.channel_id is not None
        await _reply(interaction, await reminders.acknowledge(interaction.channel_id))

    @bot.tree.command(name="interval", description="Set minutes between reminders")
    @discord.app_commands.describe(minutes="Minutes between reminders (5-1440)")
    @discord.app_commands.check(_owner_check)
    async def slash_interval(interaction: discord.Interaction, minutes: int):
        assert interaction.channel_id is not None
        outcome = await reminders.set_interval(interaction.channel_id, minutes)
        await _reply(interaction, outcome)

    @bot.tree.command(name="status", description="Show reminder settings")
    @discord.app_commands.check(_owner_check)
    async def slash_status(interaction: discord.Interaction):
        assert interaction.channel_id is not None
        status = await reminders.status(interaction.channel_id)
        await interaction.response.send_message(render_status(status), ephemeral=True)

    @bot.event
    async def on_ready():
        nonlocal _ready_fired
        log.info("online as %s", bot.user)

        # on_ready fires again on every reconnect; init must only happen once
        if _ready_fired:
            return
        _ready_fired = True

        init_views(reminders)
        bot.add_dynamic_items(ReminderButton)

        synced = await bot.tree.sync()
        log.info("synced %d slash commands", len(synced))

        if config.OWNER_ONLY:
            app_info = await bot.application_info()
            if app_info.owner:
                set_owner_id(app_info.owner.id)
            else:
                log.warning("CADENCE_OWNER_ONLY set but no owner found; allowing all")

        reminders.start()
        try:
            restored = await reminders.reconcile()
        except StoreUnavailable:
            log.exception("Could not restore active reminders from the store")
        else:
            log.info("scheduler started: %d reminder timer(s) restored", restored)

        await health.start(reminders, config.HEALTH_PORT)

    @bot.event
    async def on_message(message: discord.Message):
        if message.author.bot:
            return
        if not is_owner(message.author.id):
            return

        command = parse_text_command(message.content)
        if command is None:
            # Only nag with the keyboard in DMs; guild channels stay quiet
            if isinstance(message.channel, discord.DMChannel):
                await message.channel.send(HELP, view=reminder_keyboard())
            return

        if command.name == "start":
            await message.channel.send(
                f"{WELCOME}\n\n{HELP}", view=reminder_keyboard()
            )
            return

        outcome = await run_action(
            reminders, message.channel.id, command.name, command.minutes
        )
        assert outcome is not None
        await message.channel.send(render_outcome(outcome), view=reminder_keyboard())

    @bot.tree.error
    async def on_app_command_error(
        interaction: discord.Interaction,
        error: discord.app_commands.AppCommandError,
    ) -> None:
        if isinstance(error, discord.app_commands.CheckFailure):
            if not interaction.response.is_done():
                await interaction.response.send_message(
                    "not authorized", ephemeral=True
                )
            return
        raise error

    return bot, reminders
