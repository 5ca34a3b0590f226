"""Status text formatting utilities."""

from __future__ import annotations

import logging

from balancebar.storage.models import Failed, FailureReason, StatusSnapshot, StatusView

logger = logging.getLogger(__name__)

LOADING_TEXT = "Loading..."
ERROR_PREFIX = "Error: "


def format_duration(ms: int) -> str:
    """Format milliseconds to human-readable duration."""
    if ms < 1000:
        return f"{ms}ms"
    elif ms < 60000:
        return f"{ms / 1000:.1f}s"
    else:
        minutes = ms // 60000
        seconds = (ms % 60000) // 1000
        return f"{minutes}m {seconds}s"


def describe_failure(failed: Failed) -> str:
    """Human-readable description of a failed outcome."""
    if failed.reason is FailureReason.TIMEOUT:
        return "Script execution timed out"
    if failed.reason is FailureReason.NONZERO_EXIT:
        if failed.detail:
            return f"Script execution failed: {failed.detail}"
        return f"Script execution failed (exit code {failed.exit_code})"
    if failed.reason is FailureReason.DECODE_ERROR:
        return "Script execution failed: Unable to decode output"
    return failed.detail or "Could not start script"


def render_status(snapshot: StatusSnapshot) -> StatusView:
    """Build the text shown by displays from a status snapshot."""
    outcome = snapshot.outcome
    if outcome is None:
        return StatusView(text=LOADING_TEXT, is_loading=snapshot.is_loading)
    if isinstance(outcome, Failed):
        return StatusView(
            text=ERROR_PREFIX + describe_failure(outcome),
            is_error=True,
            is_loading=snapshot.is_loading,
        )
    return StatusView(text=outcome.text, is_loading=snapshot.is_loading)


def format_status_line(snapshot: StatusSnapshot) -> str:
    """One-line summary with update time and duration, for logs and the CLI."""
    view = render_status(snapshot)
    parts = [view.text]
    if snapshot.updated_at is not None:
        parts.append(f"at {snapshot.updated_at:%H:%M:%S}")
    if snapshot.outcome is not None and snapshot.outcome.elapsed_ms:
        parts.append(f"in {format_duration(snapshot.outcome.elapsed_ms)}")
    return " ".join(parts)
