"""Entry point for cadence-bot."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from cadence_bot.scheduling import ReminderScheduler


HELP = """\
cadence-bot -- recurring publication reminders for Discord

commands:
  cadence-bot                          Run the Discord bot
  cadence-bot reminders list           Show stored reminder records
  cadence-bot reminders list --active  Show only chats with reminders on
  cadence-bot reminders show ID        Show one chat's record
  cadence-bot help                     Show this help message

environment:
  DISCORD_TOKEN          bot token (required)
  SUPABASE_URL/KEY       use Supabase instead of the local JSON file
  CADENCE_DATA_DIR       local data directory (default ~/.cadence-bot)
  CADENCE_TIMEZONE       IANA timezone for timestamps
  CADENCE_HEALTH_PORT    serve GET /health on this port
  CADENCE_LOG_LEVEL      logging level (default INFO)
  CADENCE_OWNER_ONLY     set to 1 to accept commands from the app owner only
"""


def _dispatch_subcommand() -> bool:
    """Route CLI subcommands. Returns True if handled."""
    if len(sys.argv) < 2:
        return False
    cmd = sys.argv[1]
    rest = sys.argv[2:]
    if cmd in ("help", "--help", "-h"):
        print(HELP)
        return True
    if cmd == "reminders":
        from cadence_bot.scheduling.reminder_cmd import run_reminder_command

        run_reminder_command(rest)
        return True
    return False


log = logging.getLogger(__name__)


async def _shutdown(bot: Bot, reminders: ReminderScheduler) -> None:
    """Stop timers first so no tick fires into a closing client."""
    from cadence_bot import health

    reminders.shutdown()
    await health.stop()
    aclose = getattr(reminders.store, "aclose", None)
    if aclose is not None:
        with contextlib.suppress(Exception):
            await aclose()
    if not bot.is_closed():
        await bot.close()


async def _run(bot: Bot, reminders: ReminderScheduler, token: str) -> None:
    loop = asyncio.get_running_loop()
    _background_tasks: set[asyncio.Task[None]] = set()

    def _on_signal(sig_name: str) -> None:
        log.info("received %s, stopping bot", sig_name)
        task = loop.create_task(_shutdown(bot, reminders))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

    loop.add_signal_handler(signal.SIGTERM, _on_signal, "SIGTERM")
    loop.add_signal_handler(signal.SIGINT, _on_signal, "SIGINT")

    try:
        await bot.start(token)
    except asyncio.CancelledError:
        pass  # Signal handler already shut down
    finally:
        await _shutdown(bot, reminders)


def main() -> None:
    if _dispatch_subcommand():
        return

    import discord

    from cadence_bot import config
    from cadence_bot.bot import create_bot
    from cadence_bot.store import open_store

    discord.utils.setup_logging(level=getattr(logging, config.LOG_LEVEL, logging.INFO))

    bot, reminders = create_bot(open_store())
    asyncio.run(_run(bot, reminders, config.DISCORD_TOKEN))


if __name__ == "__main__":
    main()
