"""Display collaborator interface."""

from __future__ import annotations

from typing import Protocol

from balancebar.storage.models import StatusView


class StatusDisplay(Protocol):
    def on_status_changed(self, view: StatusView) -> None:
        """Called on loading transitions and after every completed refresh."""
        ...
