"""System utility checks."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from balancebar.services.runner import FIXED_PATH, SHELL, resolve_command
from balancebar.storage.models import CommandSource, ScriptFile

SAMPLE_SCRIPT_NAME = "sample_balance.sh"
SAMPLE_SCRIPT = """\
#!/bin/bash
# Sample balance script for balancebar.
# Print a single line on stdout; exit non-zero with a message on stderr to
# report an error.
echo '$1,234.56'
"""


def check_source(source: CommandSource | None) -> tuple[bool, str]:
    """Check that a source looks runnable, without running it."""
    if source is None:
        return True, "Not configured (showing test balance)"

    if isinstance(source, ScriptFile):
        path = Path(source.path)
        if not path.exists():
            return False, f"Script not found: {path}"
        if not path.is_file():
            return False, f"Not a file: {path}"
        if not os.access(path, os.X_OK):
            return False, f"Script is not executable: {path} (chmod +x)"
        return True, str(path)

    argv = resolve_command(source)
    if argv[0] == SHELL:
        if not Path(SHELL).exists():
            return False, f"{SHELL} not found"
        return True, f"via {SHELL}"
    executable = shutil.which(argv[0], path=FIXED_PATH)
    if executable is None:
        return False, f"Executable not found: {argv[0]}"
    return True, executable


def install_sample_script(scripts_dir: Path) -> Path:
    """Write the sample balance script into scripts_dir and make it executable."""
    scripts_dir.mkdir(parents=True, exist_ok=True)
    dest = scripts_dir / SAMPLE_SCRIPT_NAME
    if not dest.exists():
        dest.write_text(SAMPLE_SCRIPT)
    dest.chmod(0o755)
    return dest
