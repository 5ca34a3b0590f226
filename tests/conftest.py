"""Shared test fixtures."""

from __future__ import annotations

import pytest

from balancebar.config import AppConfig, DisplayConfig, LoggingConfig, RefreshSettings, SourceConfig


@pytest.fixture
def app_config(tmp_path):
    """Create a test configuration."""
    return AppConfig(
        source=SourceConfig(type="command", command="/bin/echo balance:42"),
        refresh=RefreshSettings(interval="15s", timeout=5, max_output=4096),
        display=DisplayConfig(status_file=str(tmp_path / "status.txt"), console=False),
        logging=LoggingConfig(level="DEBUG", file=str(tmp_path / "test.log")),
    )


@pytest.fixture
def config_paths(tmp_path, monkeypatch):
    """Point config, PID and log files at a temporary directory."""
    import balancebar.cli as cli_module
    import balancebar.config as cfg_module

    paths = {
        "CONFIG_DIR": tmp_path,
        "CONFIG_FILE": tmp_path / "config.toml",
        "PID_FILE": tmp_path / "balancebar.pid",
        "SCRIPTS_DIR": tmp_path / "scripts",
    }
    for name, value in paths.items():
        monkeypatch.setattr(cfg_module, name, value)
        if hasattr(cli_module, name):
            monkeypatch.setattr(cli_module, name, value)
    monkeypatch.setenv("BALANCEBAR_STATUS_FILE", str(tmp_path / "status.txt"))
    monkeypatch.setenv("BALANCEBAR_LOG_FILE", str(tmp_path / "balancebar.log"))
    return paths
