"""Thread-safe holder of the latest refresh status."""

from __future__ import annotations

import dataclasses
import logging
import threading
from datetime import datetime

from balancebar.storage.models import ExecutionOutcome, StatusSnapshot

logger = logging.getLogger(__name__)


class StatusCell:
    """Publishes whole StatusSnapshot values under a single lock.

    The orchestrator is the only writer. Readers (displays, possibly on
    another thread) call snapshot() and never see a half-applied update.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = StatusSnapshot()

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def is_loading(self) -> bool:
        return self.snapshot().is_loading

    def set(self, outcome: ExecutionOutcome) -> StatusSnapshot:
        """Store a completed outcome, stamping the update time."""
        with self._lock:
            self._snapshot = dataclasses.replace(
                self._snapshot,
                outcome=outcome,
                updated_at=datetime.now(),
            )
            return self._snapshot

    def set_loading(self, loading: bool) -> StatusSnapshot:
        with self._lock:
            self._snapshot = dataclasses.replace(self._snapshot, is_loading=loading)
            return self._snapshot

    def try_begin_loading(self) -> bool:
        """Set the loading flag unless it is already set. Returns True if set."""
        with self._lock:
            if self._snapshot.is_loading:
                return False
            self._snapshot = dataclasses.replace(self._snapshot, is_loading=True)
            return True
