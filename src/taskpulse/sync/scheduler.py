"""SyncScheduler — debounced write-back of the edit session.

Mutations restart a single-shot QTimer; when it fires, the latest snapshot is
saved on a worker thread. Only one save is ever in flight. A mutation that
arrives during a save is remembered and starts a fresh debounce cycle once
that save settles, so two full-replace writes never race each other.

Status moves Saved -> Saving -> {Saved | LocalOnly | Error}.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from PySide6.QtCore import QObject, QThread, QTimer, Signal

from taskpulse.config import Config
from taskpulse.database.models import EntityGraph

logger = logging.getLogger(__name__)


class SaveStatus(str, Enum):
    SAVED = "saved"
    SAVING = "saving"
    LOCAL_ONLY = "local"
    ERROR = "error"


class SaveWorker(QThread):
    """Runs one connector.save_graph call off the UI thread."""

    saved = Signal(object)  # SaveOutcome
    failed = Signal(str)

    def __init__(self, connector, graph: EntityGraph):
        super().__init__()
        self.connector = connector
        self.graph = graph

    def run(self):
        try:
            outcome = self.connector.save_graph(self.graph)
        except Exception as e:
            logger.exception("Save raised unexpectedly")
            self.failed.emit(str(e))
            return
        self.saved.emit(outcome)


class SyncScheduler(QObject):
    """Coalesces edits into infrequent saves and tracks save status."""

    status_changed = Signal(object)  # SaveStatus
    save_started = Signal()

    def __init__(self, connector, snapshot: Callable[[], EntityGraph],
                 debounce_ms: int | None = None, parent=None):
        super().__init__(parent)
        self.connector = connector
        self.snapshot = snapshot
        self._status = SaveStatus.SAVED
        self._loaded = False
        self._closed = False
        self._pending = False
        self._worker: Optional[SaveWorker] = None
        self._last_error = ""

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(
            Config.SYNC_DEBOUNCE_MS if debounce_ms is None else debounce_ms
        )
        self._timer.timeout.connect(self._start_save)

    # ── State ───────────────────────────────────────────────────

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def last_error(self) -> str:
        return self._last_error

    def is_saving(self) -> bool:
        """True while a save is running on the worker thread."""
        return self._worker is not None

    def has_pending_timer(self) -> bool:
        return self._timer.isActive()

    def _set_status(self, status: SaveStatus):
        if status != self._status:
            self._status = status
            self.status_changed.emit(status)

    # ── Lifecycle ───────────────────────────────────────────────

    def mark_loaded(self):
        """Arm the scheduler once the initial fetch has completed."""
        self._loaded = True

    def notify_changed(self):
        """Record that the graph changed; schedule a save."""
        if not self._loaded or self._closed:
            return
        self._set_status(SaveStatus.SAVING)
        if self._worker is not None:
            self._pending = True
            return
        self._timer.start()

    def flush(self):
        """Fire a waiting debounce immediately."""
        if self._timer.isActive():
            self._timer.stop()
            self._start_save()

    def close(self):
        """Drop any unsent debounce; let an in-flight save finish."""
        self._closed = True
        self._pending = False
        self._timer.stop()
        if self._worker is not None:
            self._worker.wait()
            self._worker = None

    # ── Save cycle ──────────────────────────────────────────────

    def _start_save(self):
        if self._worker is not None:
            self._pending = True
            return
        try:
            graph = self.snapshot()
        except Exception as e:
            logger.exception("Could not snapshot the graph for saving")
            self._on_failed(str(e))
            return
        worker = SaveWorker(self.connector, graph)
        worker.saved.connect(self._on_saved)
        worker.failed.connect(self._on_failed)
        self._worker = worker
        self.save_started.emit()
        worker.start()

    def _release_worker(self):
        if self._worker is not None:
            self._worker.wait()
            self._worker = None

    def _settle(self, status: SaveStatus):
        self._release_worker()
        if self._pending and not self._closed:
            self._pending = False
            self._timer.start()
            return
        self._set_status(status)

    def _on_saved(self, outcome):
        if outcome.is_remote:
            self._settle(SaveStatus.SAVED)
        else:
            self._settle(SaveStatus.LOCAL_ONLY)

    def _on_failed(self, message: str):
        self._last_error = message
        self._settle(SaveStatus.ERROR)
