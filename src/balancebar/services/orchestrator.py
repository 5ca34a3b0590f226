"""Single-flight refresh orchestration."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Sequence

from balancebar.display.base import StatusDisplay
from balancebar.services.runner import CommandRunner
from balancebar.storage.models import (
    ExecutionOutcome,
    Failed,
    FailureReason,
    RefreshConfig,
    StatusSnapshot,
)
from balancebar.storage.status import StatusCell
from balancebar.utils.formatting import format_status_line, render_status

logger = logging.getLogger(__name__)


class Orchestrator:
    """Run the configured source and publish the outcome.

    At most one refresh is in flight. A trigger arriving while the status
    cell is loading is dropped, not queued.
    """

    def __init__(
        self,
        runner: CommandRunner,
        cell: StatusCell,
        config_provider: Callable[[], RefreshConfig],
        displays: Sequence[StatusDisplay] = (),
    ) -> None:
        self.runner = runner
        self.cell = cell
        self.config_provider = config_provider
        self.displays = list(displays)
        self._tasks: set[asyncio.Task[bool]] = set()

    async def trigger_refresh(self) -> bool:
        """Refresh now. Returns False if a refresh was already running."""
        if not self.cell.try_begin_loading():
            logger.debug("Refresh already in flight, trigger dropped")
            return False

        self._notify(self.cell.snapshot())

        try:
            outcome = await self._execute()
        except BaseException:
            # Cancelled mid-run; release the flag so the next trigger is accepted
            self._notify(self.cell.set_loading(False))
            raise

        self.cell.set(outcome)
        snapshot = self.cell.set_loading(False)
        logger.info("Status: %s", format_status_line(snapshot))
        self._notify(snapshot)
        return True

    def request_refresh(self) -> None:
        """Schedule a refresh without waiting for it (timer ticks, signals)."""
        task = asyncio.get_running_loop().create_task(self.trigger_refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for refreshes started by request_refresh() to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _execute(self) -> ExecutionOutcome:
        try:
            config = self.config_provider()
            outcome = await self.runner.run(config.source, timeout=config.timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Refresh failed unexpectedly")
            return Failed(FailureReason.SPAWN_ERROR, detail=str(e))

        if isinstance(outcome, Failed):
            logger.warning("Refresh failed (%s): %s", outcome.reason.value, outcome.detail)
        else:
            logger.debug("Refresh succeeded: %s", outcome.text)
        return outcome

    def _notify(self, snapshot: StatusSnapshot) -> None:
        view = render_status(snapshot)
        for display in self.displays:
            try:
                display.on_status_changed(view)
            except Exception:
                logger.exception("Display %r failed to update", display)
