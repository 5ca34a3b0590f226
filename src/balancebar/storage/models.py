"""Data models for balancebar."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


@dataclass(frozen=True)
class ScriptFile:
    """An executable script run without arguments."""

    path: str


@dataclass(frozen=True)
class ShellCommand:
    """A command line, run directly or through bash."""

    text: str


CommandSource = Union[ScriptFile, ShellCommand]


class FailureReason(str, Enum):
    NONZERO_EXIT = "nonzero_exit"
    TIMEOUT = "timeout"
    SPAWN_ERROR = "spawn_error"
    DECODE_ERROR = "decode_error"


@dataclass(frozen=True)
class Success:
    """Trimmed stdout of a command that exited with status 0."""

    text: str
    elapsed_ms: int = 0


@dataclass(frozen=True)
class Failed:
    """A command that could not produce a balance."""

    reason: FailureReason
    detail: str = ""
    exit_code: int | None = None
    elapsed_ms: int = 0


ExecutionOutcome = Union[Success, Failed]


@dataclass(frozen=True)
class RefreshConfig:
    """What to run and how often, as read before each refresh."""

    interval: float
    source: CommandSource | None
    timeout: float = 10.0


@dataclass(frozen=True)
class StatusSnapshot:
    """Immutable view of the status cell."""

    outcome: ExecutionOutcome | None = None
    is_loading: bool = False
    updated_at: datetime | None = None


@dataclass(frozen=True)
class StatusView:
    """Rendered status handed to display collaborators."""

    text: str
    is_error: bool = False
    is_loading: bool = False
