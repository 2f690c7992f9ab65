"""Per-chat recurring reminders via APScheduler.

Each active chat owns one IntervalTrigger job. The store holds the desired
state ({active, interval_minutes}); this module keeps live jobs consistent
with it:

- enable/set_interval install a job, always cancelling the previous one first
- disable/acknowledge cancel the job and persist active=false
- reconcile() rebuilds jobs for every active record after a restart

Every public operation returns an Outcome instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from cadence_bot.config import TZ
from cadence_bot.errors import (
    DuplicateKey,
    ErrorKind,
    InvalidInterval,
    NotFound,
    ReminderError,
    StoreUnavailable,
)
from cadence_bot.records import ReminderRecord, now_iso, validate_interval
from cadence_bot.scheduling.timers import TimerHandle, TimerRegistry, job_id_for
from cadence_bot.store import ReminderStore

log = logging.getLogger(__name__)

Action = Literal["enable", "disable", "acknowledge", "set_interval"]
Deliver = Callable[[int, int], Awaitable[None]]

_MISFIRE_GRACE_SECONDS = 60


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of one command, enough for the transport to render a reply."""

    chat_id: int
    action: Action
    ok: bool
    active: bool = False
    interval_minutes: int | None = None
    restarted: bool = False  # set_interval while running
    error: ErrorKind | None = None
    detail: str = ""


@dataclass(frozen=True, slots=True)
class ChatStatus:
    chat_id: int
    record: ReminderRecord | None
    running: bool
    next_fire: datetime | None = None
    error: ErrorKind | None = None


class ReminderScheduler:
    def __init__(
        self,
        store: ReminderStore,
        deliver: Deliver,
        *,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self.store = store
        self._deliver = deliver
        self.scheduler = scheduler or AsyncIOScheduler(timezone=TZ)
        self.timers = TimerRegistry()

    # --- lifecycle ---

    def start(self) -> None:
        """Must be called from inside the running event loop."""
        if not self.scheduler.running:
            self.scheduler.start()

    def shutdown(self) -> None:
        for chat_id in self.timers.chat_ids():
            self._cancel_timer(chat_id)
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        log.info("Reminder scheduler stopped")

    async def reconcile(self) -> int:
        """Install a timer for every active record. Does not rewrite `active`.

        Commands may run while the listing is in flight, so each chat is
        re-read under its lock; chats disabled or already running since the
        listing are left alone.

        Raises StoreUnavailable if the store cannot be read.
        """
        installed = 0
        for listed in await self.store.list_active():
            chat_id = listed.chat_id
            async with self.timers.lock(chat_id):
                if chat_id in self.timers:
                    continue
                record = await self.store.get_record(chat_id)
                if record is None or not record.active:
                    log.info("Chat %s disabled during reconcile; skipping", chat_id)
                    continue
                self._install_timer(chat_id, record.interval_minutes)
                installed += 1
        log.info("Reconciled %d active reminder(s)", installed)
        return installed

    # --- timer primitives (caller holds the chat lock) ---

    def _install_timer(self, chat_id: int, minutes: int) -> TimerHandle:
        self._cancel_timer(chat_id)
        handle = TimerHandle(chat_id=chat_id, interval_minutes=minutes)
        handle.job = self.scheduler.add_job(
            self.tick,
            IntervalTrigger(minutes=minutes, timezone=TZ),
            args=[chat_id, handle],
            id=job_id_for(chat_id),
            name=f"reminder:{chat_id}/{minutes}m",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=_MISFIRE_GRACE_SECONDS,
        )
        self.timers.put(handle)
        log.info("Timer started for chat %s every %d min", chat_id, minutes)
        return handle

    def _cancel_timer(self, chat_id: int) -> bool:
        handle = self.timers.pop(chat_id)
        if handle is None:
            return False
        handle.cancel()
        log.info("Timer cancelled for chat %s", chat_id)
        return True

    # --- commands ---

    async def enable(self, chat_id: int) -> Outcome:
        async with self.timers.lock(chat_id):
            try:
                minutes = await self._enable_locked(chat_id)
            except ReminderError as e:
                return self._failed(chat_id, "enable", e)
        return Outcome(
            chat_id=chat_id,
            action="enable",
            ok=True,
            active=True,
            interval_minutes=minutes,
        )

    async def _enable_locked(self, chat_id: int) -> int:
        record = await self.store.get_record(chat_id)
        if record is None:
            record = ReminderRecord.new(chat_id, active=True)
            try:
                await self.store.insert(record)
            except DuplicateKey:
                # Row appeared between the read and the insert; keep its interval
                record = await self.store.get_record(chat_id)
                if record is None:
                    raise StoreUnavailable(
                        f"record for chat {chat_id} vanished after duplicate insert"
                    ) from None

        minutes = record.interval_minutes
        previous = self.timers.get(chat_id)
        self._install_timer(chat_id, minutes)
        try:
            await self.store.update(chat_id, active=True)
        except ReminderError:
            # Fail closed: no live timer without a persisted active flag.
            # A chat that was already running keeps its previous cadence.
            if previous is not None:
                self._install_timer(chat_id, previous.interval_minutes)
            else:
                self._cancel_timer(chat_id)
            raise
        return minutes

    async def set_interval(self, chat_id: int, minutes: object) -> Outcome:
        try:
            value = validate_interval(minutes)
        except InvalidInterval as e:
            return self._failed(chat_id, "set_interval", e)

        async with self.timers.lock(chat_id):
            try:
                # Creates {active: false} when the chat has never been seen
                record = await self.store.upsert(chat_id, interval_minutes=value)
                if record.active:
                    value = await self._enable_locked(chat_id)
            except ReminderError as e:
                return self._failed(chat_id, "set_interval", e)
        return Outcome(
            chat_id=chat_id,
            action="set_interval",
            ok=True,
            active=record.active,
            interval_minutes=value,
            restarted=record.active,
        )

    async def disable(self, chat_id: int) -> Outcome:
        return await self._stop(chat_id, "disable")

    async def acknowledge(self, chat_id: int) -> Outcome:
        """Same state transition as disable; only the reply differs."""
        return await self._stop(chat_id, "acknowledge")

    async def _stop(self, chat_id: int, action: Action) -> Outcome:
        interval: int | None = None
        async with self.timers.lock(chat_id):
            self._cancel_timer(chat_id)
            try:
                record = await self.store.update(chat_id, active=False)
                interval = record.interval_minutes
            except NotFound:
                log.debug("%s for chat %s with no record: already disabled", action, chat_id)
            except ReminderError as e:
                return self._failed(chat_id, action, e)
        return Outcome(
            chat_id=chat_id, action=action, ok=True, interval_minutes=interval
        )

    async def status(self, chat_id: int) -> ChatStatus:
        handle = self.timers.get(chat_id)
        try:
            record = await self.store.get_record(chat_id)
        except ReminderError as e:
            log.warning("Status for chat %s failed: %s", chat_id, e)
            return ChatStatus(
                chat_id=chat_id, record=None, running=handle is not None, error=e.kind
            )
        return ChatStatus(
            chat_id=chat_id,
            record=record,
            running=handle is not None,
            next_fire=handle.next_fire_time if handle else None,
        )

    # --- tick ---

    async def tick(self, chat_id: int, handle: TimerHandle | None = None) -> bool:
        """Fire one reminder if the chat is still active. Returns True when delivered.

        Store failures are logged and swallowed; the job keeps its cadence and
        the next tick retries.
        """
        if handle is not None and not self._live(handle):
            log.debug("Tick for chat %s skipped: timer cancelled", chat_id)
            return False
        try:
            record = await self.store.get_record(chat_id)
            if record is None or not record.active:
                log.debug("Tick for chat %s skipped: not active", chat_id)
                return False
            if handle is not None and not self._live(handle):
                return False
            await self.store.update(chat_id, last_reminder=now_iso())
        except ReminderError:
            log.exception("Reminder tick for chat %s failed", chat_id)
            return False
        if handle is not None and not self._live(handle):
            log.debug("Tick for chat %s dropped: disabled during write", chat_id)
            return False

        minutes = handle.interval_minutes if handle else record.interval_minutes
        try:
            await self._deliver(chat_id, minutes)
        except Exception:
            log.exception("Delivering reminder to chat %s failed", chat_id)
        else:
            log.info("Reminder fired for chat %s (%d min)", chat_id, minutes)
        return True

    def _live(self, handle: TimerHandle) -> bool:
        return not handle.cancelled and self.timers.is_current(handle)

    def _failed(self, chat_id: int, action: Action, error: ReminderError) -> Outcome:
        if isinstance(error, InvalidInterval):
            log.info("%s for chat %s rejected: %s", action, chat_id, error)
        else:
            log.warning("%s for chat %s failed: %s", action, chat_id, error)
        return Outcome(
            chat_id=chat_id,
            action=action,
            ok=False,
            active=chat_id in self.timers,
            error=error.kind,
            detail=str(error),
        )
