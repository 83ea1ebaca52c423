"""Cancellable elapsed-time ticker owned by a practice session."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from config.settings import settings

logger = logging.getLogger(__name__)


class SessionTimer:
    """Counts whole ticks while running.

    The ticker is an ``asyncio.Task`` created by :meth:`start` and cancelled
    by :meth:`cancel`; a cancelled timer never ticks again, so the count
    freezes at the moment of cancellation. Deadlines are computed from the
    loop clock so ticks do not drift.
    """

    def __init__(self, interval: Optional[float] = None, on_tick: Optional[Callable[[int], None]] = None) -> None:
        self._interval = interval if interval is not None else settings.TIMER_TICK_SECONDS
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task[None]] = None
        self.elapsed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(), name="session-timer")

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def reset(self) -> None:
        self.cancel()
        self.elapsed = 0

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        origin = loop.time()
        ticks = 0
        while True:
            ticks += 1
            await asyncio.sleep(max(0.0, origin + ticks * self._interval - loop.time()))
            self.elapsed += 1
            if self._on_tick is not None:
                try:
                    self._on_tick(self.elapsed)
                except Exception:  # noqa: BLE001
                    logger.exception("Timer tick callback failed")


__all__ = ["SessionTimer"]
