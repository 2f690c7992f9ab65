"""Live per-chat timer handles and the registry that owns them."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError


def job_id_for(chat_id: int) -> str:
    return f"reminder_{chat_id}"


@dataclass(slots=True, eq=False)
class TimerHandle:
    """One chat's running interval job. Never persisted."""

    chat_id: int
    interval_minutes: int
    job: Job | None = None
    cancelled: bool = False

    @property
    def job_id(self) -> str:
        return job_id_for(self.chat_id)

    @property
    def next_fire_time(self) -> datetime | None:
        if self.cancelled or self.job is None:
            return None
        # Unset until the scheduler is running and the job reaches a jobstore
        return getattr(self.job, "next_run_time", None)

    def cancel(self) -> None:
        """Idempotent. A tick already queued for this handle sees `cancelled` and skips."""
        if self.cancelled:
            return
        self.cancelled = True
        if self.job is not None:
            with contextlib.suppress(JobLookupError):
                self.job.remove()


class TimerRegistry:
    """chat_id -> TimerHandle, plus one asyncio.Lock per chat.

    Mutations for a chat happen inside `lock(chat_id)`; chats never share a lock.
    A chat's lock is dropped once nobody holds or waits on it.
    """

    def __init__(self) -> None:
        self._handles: dict[int, TimerHandle] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._lock_users: dict[int, int] = {}

    @contextlib.asynccontextmanager
    async def lock(self, chat_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(chat_id, asyncio.Lock())
        self._lock_users[chat_id] = self._lock_users.get(chat_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[chat_id] -= 1
            if not self._lock_users[chat_id]:
                del self._lock_users[chat_id]
                del self._locks[chat_id]

    def is_locked(self, chat_id: int) -> bool:
        lock = self._locks.get(chat_id)
        return lock is not None and lock.locked()

    def lock_count(self) -> int:
        return len(self._locks)

    def get(self, chat_id: int) -> TimerHandle | None:
        return self._handles.get(chat_id)

    def put(self, handle: TimerHandle) -> TimerHandle | None:
        """Install handle; returns whatever it displaced (caller cancels it)."""
        previous = self._handles.get(handle.chat_id)
        self._handles[handle.chat_id] = handle
        return previous

    def pop(self, chat_id: int) -> TimerHandle | None:
        return self._handles.pop(chat_id, None)

    def is_current(self, handle: TimerHandle) -> bool:
        return self._handles.get(handle.chat_id) is handle

    def chat_ids(self) -> list[int]:
        return list(self._handles)

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)
