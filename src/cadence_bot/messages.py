"""User-facing text for commands, reminders, and errors."""

from cadence_bot.errors import ErrorKind
from cadence_bot.records import DEFAULT_INTERVAL, MAX_INTERVAL, MIN_INTERVAL, PRESET_INTERVALS
from cadence_bot.scheduling import ChatStatus, Outcome

ENABLE_LABEL = "🔔 Enable reminders"
DISABLE_LABEL = "🔕 Disable reminders"
PUBLISHED_LABEL = "✅ Published"


def interval_label(minutes: int) -> str:
    return f"⏱ {minutes} min"


WELCOME = (
    "hi! i'll remind you when it's time to publish.\n"
    f"default interval: {DEFAULT_INTERVAL} minutes."
)

HELP = f"""\
available commands:
{ENABLE_LABEL} (/remind) - start reminders
{DISABLE_LABEL} (/stop) - stop reminders
⏱ {'/'.join(str(m) for m in PRESET_INTERVALS)} min (/interval N) - set the interval
{PUBLISHED_LABEL} (/published) - mark the publication done
/status - show current settings"""

_INVALID_INTERVAL = (
    f"the interval must be a whole number of minutes from {MIN_INTERVAL} "
    f"to {MAX_INTERVAL} (24 hours).\n"
    f"suggested: {', '.join(str(m) for m in PRESET_INTERVALS)} minutes."
)

_FAILURE_CONTEXT = {
    "enable": "enabling reminders",
    "disable": "disabling reminders",
    "acknowledge": "marking the publication",
    "set_interval": "changing the interval",
}


def reminder_text(interval_minutes: int) -> str:
    return f"⏰ time to publish! (interval: {interval_minutes} minutes)"


def render_outcome(outcome: Outcome) -> str:
    if not outcome.ok:
        if outcome.error is ErrorKind.INVALID_INTERVAL:
            return _INVALID_INTERVAL
        return (
            f"something went wrong while {_FAILURE_CONTEXT[outcome.action]}. "
            "please try again later."
        )

    if outcome.action == "enable":
        return (
            f"🔔 reminders on, every {outcome.interval_minutes} minutes.\n"
            "use the buttons below to change the interval or turn them off."
        )
    if outcome.action == "set_interval":
        if outcome.restarted:
            return (
                f"interval changed to {outcome.interval_minutes} minutes. "
                "reminders restarted."
            )
        return (
            f"interval set to {outcome.interval_minutes} minutes. "
            f'press "{ENABLE_LABEL}" to start.'
        )
    if outcome.action == "acknowledge":
        return "🎉 nice, publication done! reminders are off."
    return f'🔕 reminders off. press "{ENABLE_LABEL}" to resume.'


def render_status(status: ChatStatus) -> str:
    if status.error is not None:
        return "couldn't load your settings. please try again later."
    record = status.record
    if record is None:
        return f"reminders off. interval: {DEFAULT_INTERVAL} minutes (default)."
    state = "on" if record.active else "off"
    lines = [f"reminders {state}. interval: {record.interval_minutes} minutes."]
    if status.next_fire is not None:
        lines.append(f"next reminder: {status.next_fire.strftime('%H:%M')}")
    if record.last_reminder:
        lines.append(f"last reminder: {record.last_reminder[:16].replace('T', ' ')}")
    if record.active and not status.running:
        lines.append("(timer not running; press enable to restart it)")
    return "\n".join(lines)
