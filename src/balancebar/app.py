"""Application setup and lifecycle."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Sequence

from balancebar.config import ConfigStore
from balancebar.display.base import StatusDisplay
from balancebar.services.orchestrator import Orchestrator
from balancebar.services.runner import CommandRunner
from balancebar.services.scheduler import RefreshScheduler
from balancebar.storage.status import StatusCell

logger = logging.getLogger(__name__)


class BalanceApp:
    """Owns the status cell, runner, orchestrator and scheduler."""

    def __init__(self, store: ConfigStore, displays: Sequence[StatusDisplay] = ()) -> None:
        self.store = store
        config = store.current
        self.cell = StatusCell()
        self.runner = CommandRunner(
            default_timeout=float(config.refresh.timeout),
            max_output=config.refresh.max_output,
        )
        self.orchestrator = Orchestrator(
            runner=self.runner,
            cell=self.cell,
            config_provider=store.refresh_config,
            displays=displays,
        )
        self.scheduler = RefreshScheduler()

    def start(self) -> None:
        interval = self.store.refresh_config().interval
        self.scheduler.start(interval, self.orchestrator.request_refresh)

    def refresh(self) -> None:
        logger.info("Manual refresh requested")
        self.orchestrator.request_refresh()

    def reload(self) -> None:
        """Re-read settings; a new interval takes effect immediately."""
        config = self.store.reload()
        self.runner.max_output = config.refresh.max_output
        self.scheduler.reconfigure(config.refresh_config().interval)

    def toggle_pause(self) -> None:
        """Pause around system sleep, resume (and refresh) on wake."""
        if self.scheduler.is_paused:
            logger.info("Resuming refresh")
            self.scheduler.resume()
        else:
            logger.info("Pausing refresh")
            self.scheduler.pause()

    async def shutdown(self) -> None:
        self.scheduler.stop()
        await self.orchestrator.wait_idle()


async def run_app(store: ConfigStore, displays: Sequence[StatusDisplay] = ()) -> None:
    """Start refreshing and run until SIGTERM or SIGINT."""
    app = BalanceApp(store, displays)
    app.start()

    logger.info("balancebar started. Waiting for signals...")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _signal_handler)
    loop.add_signal_handler(signal.SIGUSR1, app.refresh)
    loop.add_signal_handler(signal.SIGUSR2, app.toggle_pause)
    loop.add_signal_handler(signal.SIGHUP, app.reload)

    await stop_event.wait()

    # Graceful shutdown
    logger.info("Shutting down...")
    await app.shutdown()
    logger.info("balancebar stopped.")
