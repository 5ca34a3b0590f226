"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from balancebar.storage.models import CommandSource, RefreshConfig, ScriptFile, ShellCommand

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".balancebar"
CONFIG_FILE = CONFIG_DIR / "config.toml"
PID_FILE = CONFIG_DIR / "balancebar.pid"
SCRIPTS_DIR = CONFIG_DIR / "scripts"

SOURCE_TYPES = ("command", "script")

REFRESH_INTERVALS: dict[str, int] = {
    "15s": 15,
    "30s": 30,
    "1m": 60,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
}
DEFAULT_INTERVAL = "30s"


@dataclass
class SourceConfig:
    type: str = "command"
    script_path: str = ""
    command: str = ""


@dataclass
class RefreshSettings:
    interval: str = DEFAULT_INTERVAL
    timeout: int = 10
    max_output: int = 4096


@dataclass
class DisplayConfig:
    status_file: str = "~/.balancebar/status.txt"
    console: bool = True


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str = "~/.balancebar/balancebar.log"


@dataclass
class AppConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    refresh: RefreshSettings = field(default_factory=RefreshSettings)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def command_source(self) -> CommandSource | None:
        """The active source, or None when the active variant is empty."""
        if self.source.type == "script":
            path = self.source.script_path.strip()
            return ScriptFile(str(Path(path).expanduser())) if path else None
        command = self.source.command.strip()
        return ShellCommand(command) if command else None

    def interval_seconds(self) -> int:
        """Interval in seconds; unknown aliases count as the default."""
        return REFRESH_INTERVALS.get(self.refresh.interval, REFRESH_INTERVALS[DEFAULT_INTERVAL])

    def refresh_config(self) -> RefreshConfig:
        return RefreshConfig(
            interval=float(self.interval_seconds()),
            source=self.command_source(),
            timeout=float(self.refresh.timeout),
        )


def ensure_config_dir() -> None:
    """Create config directory with secure permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(CONFIG_DIR, 0o700)


def load_config() -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    config = AppConfig()

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)

        source = data.get("source", {})
        config.source.type = source.get("type", config.source.type)
        config.source.script_path = source.get("script_path", config.source.script_path)
        config.source.command = source.get("command", config.source.command)

        refresh = data.get("refresh", {})
        config.refresh.interval = refresh.get("interval", config.refresh.interval)
        config.refresh.timeout = refresh.get("timeout", config.refresh.timeout)
        config.refresh.max_output = refresh.get("max_output", config.refresh.max_output)

        display = data.get("display", {})
        config.display.status_file = display.get("status_file", config.display.status_file)
        config.display.console = display.get("console", config.display.console)

        logging_cfg = data.get("logging", {})
        config.logging.level = logging_cfg.get("level", config.logging.level)
        config.logging.file = logging_cfg.get("file", config.logging.file)

    # Environment variable overrides
    if env_type := os.environ.get("BALANCEBAR_SOURCE_TYPE"):
        config.source.type = env_type
    if env_command := os.environ.get("BALANCEBAR_COMMAND"):
        config.source.command = env_command
    if env_script := os.environ.get("BALANCEBAR_SCRIPT_PATH"):
        config.source.script_path = env_script
    if env_interval := os.environ.get("BALANCEBAR_INTERVAL"):
        config.refresh.interval = env_interval
    if env_timeout := os.environ.get("BALANCEBAR_TIMEOUT"):
        config.refresh.timeout = int(env_timeout)
    if env_status_file := os.environ.get("BALANCEBAR_STATUS_FILE"):
        config.display.status_file = env_status_file
    if env_log_level := os.environ.get("BALANCEBAR_LOG_LEVEL"):
        config.logging.level = env_log_level
    if env_log_file := os.environ.get("BALANCEBAR_LOG_FILE"):
        config.logging.file = env_log_file

    if config.source.type not in SOURCE_TYPES:
        logger.warning("Unknown source type %r, using 'command'", config.source.type)
        config.source.type = "command"
    if config.refresh.interval not in REFRESH_INTERVALS:
        logger.warning(
            "Unknown refresh interval %r, using %s", config.refresh.interval, DEFAULT_INTERVAL
        )
        config.refresh.interval = DEFAULT_INTERVAL

    return config


def save_config(config: AppConfig) -> None:
    """Save configuration to TOML file."""
    ensure_config_dir()

    data = {
        "source": {
            "type": config.source.type,
            "script_path": config.source.script_path,
            "command": config.source.command,
        },
        "refresh": {
            "interval": config.refresh.interval,
            "timeout": config.refresh.timeout,
            "max_output": config.refresh.max_output,
        },
        "display": {
            "status_file": config.display.status_file,
            "console": config.display.console,
        },
        "logging": {
            "level": config.logging.level,
            "file": config.logging.file,
        },
    }

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(data, f)

    os.chmod(CONFIG_FILE, 0o600)


class ConfigStore:
    """Holds the current AppConfig for concurrent readers.

    A published config is never mutated; reload() swaps in a freshly loaded
    object, so readers always see one consistent config.
    """

    def __init__(self, loader: Callable[[], AppConfig] = load_config) -> None:
        self._loader = loader
        self._current = loader()

    @property
    def current(self) -> AppConfig:
        return self._current

    def reload(self) -> AppConfig:
        """Re-read the configuration. Keeps the old one if loading fails."""
        try:
            config = self._loader()
        except (OSError, ValueError) as e:
            logger.error("Failed to reload configuration: %s", e)
            return self._current
        self._current = config
        logger.info("Configuration reloaded")
        return config

    def refresh_config(self) -> RefreshConfig:
        return self._current.refresh_config()
