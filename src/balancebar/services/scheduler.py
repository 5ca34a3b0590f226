"""Periodic refresh timer."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class RefreshScheduler:
    """Fire a callback now and then every ``interval`` seconds.

    Runs as a task on the current event loop. The callback is synchronous
    and should only hand work off (e.g. schedule a task), never block.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[None] | None = None
        self._interval: float | None = None
        self._on_tick: TickCallback | None = None
        self._paused = False

    @property
    def is_running(self) -> bool:
        return self._task is not None

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def interval(self) -> float | None:
        return self._interval

    def start(self, interval: float, on_tick: TickCallback) -> None:
        """Start ticking. An already running timer is stopped first."""
        if interval <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval}")
        self.stop()
        self._interval = interval
        self._on_tick = on_tick
        self._paused = False
        self._task = asyncio.get_running_loop().create_task(self._loop(interval, on_tick))
        logger.info("Refresh scheduler started (every %gs)", interval)

    def stop(self) -> None:
        """Cancel future ticks. Safe to call repeatedly."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.info("Refresh scheduler stopped")

    def reconfigure(self, interval: float) -> None:
        """Change the interval, restarting the timer if it is running."""
        if interval == self._interval and self.is_running:
            return
        if self.is_running and self._on_tick is not None:
            self.start(interval, self._on_tick)
        else:
            self._interval = interval

    def pause(self) -> None:
        """Stop ticking but remember the interval and callback (system sleep)."""
        if not self.is_running:
            return
        self.stop()
        self._paused = True

    def resume(self) -> None:
        """Restart after pause(); the immediate tick refreshes stale data."""
        if not self._paused or self._interval is None or self._on_tick is None:
            return
        self.start(self._interval, self._on_tick)

    async def _loop(self, interval: float, on_tick: TickCallback) -> None:
        while True:
            try:
                on_tick()
            except Exception:
                logger.exception("Refresh tick handler failed")
            await asyncio.sleep(interval)
