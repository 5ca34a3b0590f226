"""Background process management: PID file, signals, daemonization."""

from __future__ import annotations

import logging
import os
import signal
import sys
import time
from pathlib import Path

logger = logging.getLogger(__name__)


def write_pid(pid_file: Path) -> None:
    """Write the current process PID to file."""
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(os.getpid()))


def read_pid(pid_file: Path) -> int | None:
    """Read PID from file and verify the process exists. Stale files are removed."""
    if not pid_file.exists():
        return None
    try:
        pid = int(pid_file.read_text().strip())
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        pid_file.unlink(missing_ok=True)
        return None


def signal_daemon(pid_file: Path, sig: int) -> bool:
    """Send a signal to the running instance. Returns False if none is running."""
    pid = read_pid(pid_file)
    if pid is None:
        return False
    try:
        os.kill(pid, sig)
    except ProcessLookupError:
        pid_file.unlink(missing_ok=True)
        return False
    logger.debug("Sent %s to PID %d", signal.Signals(sig).name, pid)
    return True


def stop_daemon(pid_file: Path, wait: float = 15.0) -> bool:
    """Stop the running instance, escalating to SIGKILL after ``wait`` seconds."""
    pid = read_pid(pid_file)
    if pid is None:
        return False

    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        pid_file.unlink(missing_ok=True)
        return True

    # An in-flight refresh may take up to its timeout to finish
    for _ in range(int(wait * 10)):
        try:
            os.kill(pid, 0)
            time.sleep(0.1)
        except ProcessLookupError:
            pid_file.unlink(missing_ok=True)
            return True

    try:
        os.kill(pid, signal.SIGKILL)
    except ProcessLookupError:
        pass

    pid_file.unlink(missing_ok=True)
    return True


def daemonize(log_file: Path) -> None:
    """Unix double-fork daemonize."""
    pid = os.fork()
    if pid > 0:
        sys.exit(0)

    os.setsid()

    pid = os.fork()
    if pid > 0:
        sys.exit(0)

    sys.stdout.flush()
    sys.stderr.flush()

    devnull = open(os.devnull, "r")
    log_fd = open(log_file, "a")

    os.dup2(devnull.fileno(), sys.stdin.fileno())
    os.dup2(log_fd.fileno(), sys.stdout.fileno())
    os.dup2(log_fd.fileno(), sys.stderr.fileno())
