"""Status file display for shell prompts and bar widgets."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from balancebar.storage.models import StatusView

logger = logging.getLogger(__name__)


class StatusFileDisplay:
    """Keep the latest status text in a file, replaced atomically.

    Loading transitions are ignored so readers keep the last value until a
    refresh completes.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser().resolve()

    def on_status_changed(self, view: StatusView) -> None:
        if view.is_loading:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(view.text + "\n", encoding="utf-8")
        os.replace(tmp, self.path)
        logger.debug("Status written to %s", self.path)


def read_status_file(path: str | Path) -> str | None:
    """Return the last published status text, or None if there is none."""
    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        return None
    return resolved.read_text(encoding="utf-8").strip()
