"""Health-check HTTP server for container deployments."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from aiohttp import web

if TYPE_CHECKING:
    from cadence_bot.scheduling import ReminderScheduler

log = logging.getLogger(__name__)

_KEY_SCHEDULER = web.AppKey("scheduler")


async def _handle_health(request: web.Request) -> web.Response:
    scheduler: ReminderScheduler = request.app[_KEY_SCHEDULER]
    return web.json_response(
        {
            "status": "UP" if scheduler.scheduler.running else "STARTING",
            "timers": len(scheduler.timers),
        }
    )


def create_app(scheduler: ReminderScheduler) -> web.Application:
    app = web.Application()
    app[_KEY_SCHEDULER] = scheduler
    app.router.add_get("/health", _handle_health)
    return app


_runner: web.AppRunner | None = None


async def start(scheduler: ReminderScheduler, port: int | None) -> None:
    """No-op unless a port is configured."""
    global _runner  # noqa: PLW0603
    if port is None or _runner is not None:
        return
    _runner = web.AppRunner(create_app(scheduler))
    await _runner.setup()
    site = web.TCPSite(_runner, "0.0.0.0", port)
    await site.start()
    log.info("Health server started on 0.0.0.0:%d", port)


async def stop() -> None:
    global _runner  # noqa: PLW0603
    if _runner:
        await _runner.cleanup()
        _runner = None
        log.info("Health server stopped")
