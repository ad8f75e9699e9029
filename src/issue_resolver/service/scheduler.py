"""Recurring trigger for the scan-and-resolve flow."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

log = structlog.get_logger()


class Scheduler:
    """Runs a job every ``interval_seconds`` on the running event loop.

    A failing run is logged and the next one is still scheduled. Runs never
    overlap within one scheduler; a manual trigger may overlap with a
    scheduled run, which the resolver tolerates because closing is idempotent.

    Example:
        scheduler = Scheduler(job, interval_seconds=86400)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        run_on_startup: bool = False,
    ) -> None:
        self._job = job
        self._interval = interval_seconds
        self._run_on_startup = run_on_startup
        self._task: asyncio.Task[None] | None = None
        self.runs = 0

    @property
    def is_running(self) -> bool:
        """Return True while the scheduling loop is active."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the scheduling loop in the background."""
        if self.is_running:
            log.warning("scheduler_already_running")
            return
        self._task = asyncio.create_task(self._loop())
        log.info(
            "scheduler_started",
            interval_seconds=self._interval,
            run_on_startup=self._run_on_startup,
        )

    async def stop(self) -> None:
        """Cancel the scheduling loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        log.info("scheduler_stopped", runs=self.runs)

    async def _loop(self) -> None:
        if not self._run_on_startup:
            await asyncio.sleep(self._interval)
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval)

    async def run_once(self) -> None:
        """Run the job once, logging instead of raising on failure."""
        self.runs += 1
        try:
            await self._job()
        except Exception as e:
            log.exception("scheduled_run_failed", run=self.runs, error=str(e))
