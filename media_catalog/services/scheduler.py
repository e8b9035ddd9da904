from __future__ import annotations

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Invoke ``orchestrator.refresh()`` on a fixed cadence inside the event loop."""

    def __init__(self, orchestrator, *, interval: float, run_on_start: bool = True) -> None:
        self.orchestrator = orchestrator
        self.interval = float(interval)
        self.run_on_start = run_on_start
        self.cycles = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def started(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.started:
            return
        if self.interval <= 0 and not self.run_on_start:
            logger.info("Scheduled refresh disabled")
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _tick(self) -> None:
        self.cycles += 1
        try:
            await self.orchestrator.refresh()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Scheduled refresh failed")

    async def _loop(self) -> None:
        if self.run_on_start:
            await self._tick()
        if self.interval <= 0:
            return
        while True:
            await asyncio.sleep(self.interval)
            await self._tick()
