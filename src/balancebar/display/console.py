"""Terminal display using rich."""

from __future__ import annotations

import logging
from datetime import datetime

from rich.console import Console
from rich.markup import escape

from balancebar.storage.models import StatusView

logger = logging.getLogger(__name__)


class ConsoleDisplay:
    """Print each status transition as a timestamped line."""

    def __init__(self, console: Console | None = None, show_loading: bool = True) -> None:
        self.console = console or Console()
        self.show_loading = show_loading
        self._last_text: str | None = None

    def on_status_changed(self, view: StatusView) -> None:
        stamp = f"[dim]{datetime.now():%H:%M:%S}[/dim]"
        if view.is_loading:
            if self.show_loading:
                self.console.print(f"{stamp} [dim]Refreshing...[/dim]")
            return

        text = escape(view.text)
        if view.is_error:
            self.console.print(f"{stamp} [red]{text}[/red]", highlight=False)
        elif view.text != self._last_text:
            self.console.print(f"{stamp} [green]{text}[/green]", highlight=False)
        else:
            self.console.print(f"{stamp} {text} [dim](unchanged)[/dim]", highlight=False)
        self._last_text = view.text
