"""Tests for status formatting utilities."""

from __future__ import annotations

from datetime import datetime

from balancebar.storage.models import Failed, FailureReason, StatusSnapshot, StatusView, Success
from balancebar.utils.formatting import (
    describe_failure,
    format_duration,
    format_status_line,
    render_status,
)


class TestFormatDuration:
    def test_milliseconds(self):
        assert format_duration(500) == "500ms"

    def test_seconds(self):
        assert format_duration(2500) == "2.5s"

    def test_minutes(self):
        assert format_duration(125000) == "2m 5s"

    def test_zero(self):
        assert format_duration(0) == "0ms"


class TestDescribeFailure:
    def test_timeout(self):
        assert describe_failure(Failed(FailureReason.TIMEOUT)) == "Script execution timed out"

    def test_nonzero_with_stderr(self):
        failed = Failed(FailureReason.NONZERO_EXIT, detail="token expired", exit_code=2)
        assert describe_failure(failed) == "Script execution failed: token expired"

    def test_nonzero_without_stderr(self):
        failed = Failed(FailureReason.NONZERO_EXIT, detail="", exit_code=1)
        assert describe_failure(failed) == "Script execution failed (exit code 1)"

    def test_decode_error(self):
        failed = Failed(FailureReason.DECODE_ERROR, detail="Unable to decode output")
        assert describe_failure(failed) == "Script execution failed: Unable to decode output"

    def test_spawn_error(self):
        failed = Failed(FailureReason.SPAWN_ERROR, detail="[Errno 13] Permission denied")
        assert describe_failure(failed) == "[Errno 13] Permission denied"


class TestRenderStatus:
    def test_before_first_refresh(self):
        assert render_status(StatusSnapshot()) == StatusView(text="Loading...")

    def test_success(self):
        view = render_status(StatusSnapshot(outcome=Success("$5.00")))
        assert view == StatusView(text="$5.00")

    def test_failure_has_error_prefix(self):
        view = render_status(StatusSnapshot(outcome=Failed(FailureReason.TIMEOUT), is_loading=True))
        assert view.text.startswith("Error: ")
        assert view.is_error
        assert view.is_loading

    def test_loading_keeps_previous_text(self):
        view = render_status(StatusSnapshot(outcome=Success("$5.00"), is_loading=True))
        assert view.text == "$5.00"
        assert view.is_loading


class TestFormatStatusLine:
    def test_includes_time_and_duration(self):
        snapshot = StatusSnapshot(
            outcome=Success("$5.00", elapsed_ms=1500),
            updated_at=datetime(2024, 1, 1, 9, 30, 5),
        )
        assert format_status_line(snapshot) == "$5.00 at 09:30:05 in 1.5s"

    def test_plain_when_never_updated(self):
        assert format_status_line(StatusSnapshot()) == "Loading..."
