"""Scheduling: per-chat reminder timers and the APScheduler integration."""

from cadence_bot.scheduling.scheduler import ChatStatus, Outcome, ReminderScheduler
from cadence_bot.scheduling.timers import TimerHandle, TimerRegistry

__all__ = [
    "ChatStatus",
    "Outcome",
    "ReminderScheduler",
    "TimerHandle",
    "TimerRegistry",
]
