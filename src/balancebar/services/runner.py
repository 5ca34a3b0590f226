"""Command executor service with a hard deadline."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time

from balancebar.storage.models import (
    CommandSource,
    ExecutionOutcome,
    Failed,
    FailureReason,
    ScriptFile,
    Success,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
# Extra time allowed past the deadline for the killed process to be reaped.
GRACE_PERIOD = 1.0
TERMINATE_WAIT = 0.5

FIXED_PATH = "/usr/local/bin:/usr/bin:/bin:/usr/sbin:/sbin:/opt/homebrew/bin"
SHELL = "/bin/bash"
DIRECT_EXEC_PREFIXES: tuple[str, ...] = (
    "/usr/bin/",
    "/bin/",
    "/usr/local/bin/",
    "/opt/homebrew/bin/",
)
SHELL_SYNTAX = set("|&;<>()$`\\\"'*?[]{}#~\n")

TEST_BALANCE = "$1,234.56"
UNDECODABLE_PLACEHOLDER = "Unknown error"


def resolve_command(source: CommandSource) -> list[str]:
    """Turn a command source into an argv list."""
    if isinstance(source, ScriptFile):
        return [source.path]

    text = source.text.strip()
    if text.startswith(DIRECT_EXEC_PREFIXES) and not SHELL_SYNTAX.intersection(text):
        # Plain binary plus arguments, no shell needed
        return text.split()
    return [SHELL, "-c", text]


def build_env() -> dict[str, str]:
    """Inherited environment with a fixed PATH."""
    env = dict(os.environ)
    env["PATH"] = FIXED_PATH
    return env


def _decode_stderr(data: bytes) -> str:
    try:
        return data.decode("utf-8").strip()
    except UnicodeDecodeError:
        return UNDECODABLE_PLACEHOLDER


class CommandRunner:
    """Run a balance command or script and classify the result."""

    def __init__(self, default_timeout: float = DEFAULT_TIMEOUT, max_output: int = 4096) -> None:
        self.default_timeout = default_timeout
        self.max_output = max_output

    def run_test_command(self) -> ExecutionOutcome:
        """Static balance used when nothing is configured."""
        return Success(text=TEST_BALANCE)

    async def run(
        self,
        source: CommandSource | None,
        timeout: float | None = None,
    ) -> ExecutionOutcome:
        """Execute a source and return its outcome. Never raises for process errors."""
        if source is None:
            logger.debug("No source configured, using test balance")
            return self.run_test_command()

        timeout = self.default_timeout if timeout is None else timeout
        argv = resolve_command(source)
        logger.debug("Executing %s (timeout %.1fs)", argv, timeout)

        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                env=build_env(),
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("Could not start %s: %s", argv[0], e)
            return Failed(FailureReason.SPAWN_ERROR, detail=str(e))

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(proc)
            logger.warning("Command timed out after %.1fs: %s", timeout, argv)
            return Failed(
                FailureReason.TIMEOUT,
                detail=f"Timed out after {timeout:g}s",
                elapsed_ms=self._elapsed(start),
            )
        except BaseException:
            # Cancelled from outside; do not leave the child behind
            await self._kill(proc)
            raise

        elapsed_ms = self._elapsed(start)
        exit_code = proc.returncode
        # Background jobs started by the command are still in its group
        self._signal_group(proc, signal.SIGTERM)

        if exit_code != 0:
            stderr = _decode_stderr(stderr_bytes)[: self.max_output]
            logger.info("Command exited with status %s: %s", exit_code, stderr)
            return Failed(
                FailureReason.NONZERO_EXIT,
                detail=stderr,
                exit_code=exit_code,
                elapsed_ms=elapsed_ms,
            )

        try:
            stdout = stdout_bytes.decode("utf-8")
        except UnicodeDecodeError:
            logger.info("Command output is not valid UTF-8")
            return Failed(
                FailureReason.DECODE_ERROR,
                detail="Unable to decode output",
                exit_code=exit_code,
                elapsed_ms=elapsed_ms,
            )

        return Success(text=stdout.strip()[: self.max_output], elapsed_ms=elapsed_ms)

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        """Terminate the child's process group and reap the child."""
        # The group is signalled even when the child already exited, since
        # background jobs it started may still hold the output pipes.
        self._signal_group(proc, signal.SIGTERM)
        try:
            await asyncio.wait_for(proc.wait(), timeout=TERMINATE_WAIT)
            return
        except asyncio.TimeoutError:
            pass
        self._signal_group(proc, signal.SIGKILL)
        try:
            await asyncio.wait_for(proc.wait(), timeout=GRACE_PERIOD - TERMINATE_WAIT)
        except asyncio.TimeoutError:
            logger.error("Process %d still running after SIGKILL", proc.pid)

    @staticmethod
    def _signal_group(proc: asyncio.subprocess.Process, sig: int) -> None:
        try:
            os.killpg(proc.pid, sig)
        except ProcessLookupError:
            pass
        except PermissionError:
            proc.send_signal(sig)

    @staticmethod
    def _elapsed(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
