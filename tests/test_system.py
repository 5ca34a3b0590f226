"""Tests for system utility checks."""

from __future__ import annotations

import os

import pytest

from balancebar.services.runner import CommandRunner
from balancebar.storage.models import ScriptFile, ShellCommand, Success
from balancebar.utils.system import check_source, install_sample_script


class TestCheckSource:
    def test_unconfigured_is_fine(self):
        valid, message = check_source(None)
        assert valid
        assert "test balance" in message

    def test_missing_script(self, tmp_path):
        valid, message = check_source(ScriptFile(str(tmp_path / "nope.sh")))
        assert not valid
        assert "not found" in message

    def test_script_not_executable(self, tmp_path):
        script = tmp_path / "balance.sh"
        script.write_text("#!/bin/bash\necho 1\n")
        script.chmod(0o644)
        valid, message = check_source(ScriptFile(str(script)))
        assert not valid
        assert "chmod" in message

    def test_direct_command(self):
        valid, message = check_source(ShellCommand("/bin/echo hi"))
        assert valid
        assert message.endswith("echo")

    def test_missing_direct_command(self):
        valid, message = check_source(ShellCommand("/usr/local/bin/no-such-balance-tool --json"))
        assert not valid
        assert "no-such-balance-tool" in message

    def test_shell_command(self):
        valid, message = check_source(ShellCommand("echo hi | tr a-z A-Z"))
        assert valid
        assert "bash" in message


class TestSampleScript:
    def test_installs_executable_script(self, tmp_path):
        path = install_sample_script(tmp_path / "scripts")
        assert path.exists()
        assert os.access(path, os.X_OK)

    def test_keeps_user_edits(self, tmp_path):
        path = install_sample_script(tmp_path)
        path.write_text("#!/bin/bash\necho '$0.00'\n")
        install_sample_script(tmp_path)
        assert "$0.00" in path.read_text()

    @pytest.mark.asyncio
    async def test_sample_script_runs(self, tmp_path):
        path = install_sample_script(tmp_path)
        outcome = await CommandRunner().run(ScriptFile(str(path)))
        assert outcome == Success(text="$1,234.56", elapsed_ms=outcome.elapsed_ms)
