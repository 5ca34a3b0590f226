"""Tests for application wiring and lifecycle."""

from __future__ import annotations

import asyncio
import os
import signal

import pytest

from balancebar.app import BalanceApp, run_app
from balancebar.config import AppConfig, ConfigStore, RefreshSettings, SourceConfig
from balancebar.display.status_file import StatusFileDisplay, read_status_file
from balancebar.storage.models import StatusView


class RecordingDisplay:
    def __init__(self) -> None:
        self.views: list[StatusView] = []

    def on_status_changed(self, view: StatusView) -> None:
        self.views.append(view)


class SwitchableLoader:
    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def __call__(self) -> AppConfig:
        return self.config


async def _wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class TestBalanceApp:
    @pytest.mark.asyncio
    async def test_start_refreshes_immediately(self, app_config, tmp_path):
        store = ConfigStore(loader=lambda: app_config)
        status_file = tmp_path / "status.txt"
        app = BalanceApp(store, [StatusFileDisplay(status_file)])

        app.start()
        await _wait_for(lambda: app.cell.snapshot().outcome is not None)
        await app.shutdown()

        assert app.cell.snapshot().outcome.text == "balance:42"
        assert read_status_file(status_file) == "balance:42"

    @pytest.mark.asyncio
    async def test_reload_applies_new_source_and_interval(self, app_config):
        loader = SwitchableLoader(app_config)
        app = BalanceApp(ConfigStore(loader=loader))
        app.start()
        await _wait_for(lambda: app.cell.snapshot().outcome is not None)
        assert app.scheduler.interval == 15

        loader.config = AppConfig(
            source=SourceConfig(command="/bin/echo reloaded"),
            refresh=RefreshSettings(interval="1m"),
        )
        app.reload()
        await _wait_for(lambda: getattr(app.cell.snapshot().outcome, "text", None) == "reloaded")
        await app.shutdown()

        assert app.scheduler.interval == 60

    @pytest.mark.asyncio
    async def test_manual_refresh(self, app_config):
        display = RecordingDisplay()
        app = BalanceApp(ConfigStore(loader=lambda: app_config), [display])

        app.refresh()
        await app.orchestrator.wait_idle()

        assert display.views[-1] == StatusView(text="balance:42")

    @pytest.mark.asyncio
    async def test_toggle_pause(self, app_config):
        app = BalanceApp(ConfigStore(loader=lambda: app_config))
        app.start()
        app.toggle_pause()
        assert app.scheduler.is_paused
        app.toggle_pause()
        assert app.scheduler.is_running
        await app.shutdown()
        assert not app.scheduler.is_running


class TestRunApp:
    @pytest.mark.asyncio
    async def test_runs_until_sigterm(self, app_config, tmp_path):
        status_file = tmp_path / "status.txt"
        loop = asyncio.get_running_loop()
        loop.call_later(0.5, os.kill, os.getpid(), signal.SIGTERM)

        await asyncio.wait_for(
            run_app(ConfigStore(loader=lambda: app_config), [StatusFileDisplay(status_file)]),
            timeout=10,
        )

        assert read_status_file(status_file) == "balance:42"
