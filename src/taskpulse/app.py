"""Application wiring — the client-side sync stack."""

from taskpulse.session import EditSession
from taskpulse.sync.connector import RemoteConnector
from taskpulse.sync.local_cache import LocalCache
from taskpulse.sync.scheduler import SyncScheduler


def build_session(connector: RemoteConnector | None = None,
                  debounce_ms: int | None = None) -> EditSession:
    """Create an edit session with a scheduler already attached.

    Call ``session.load()`` next; saves are only scheduled after it returns.
    """
    connector = connector or RemoteConnector(cache=LocalCache())
    session = EditSession(connector)
    scheduler = SyncScheduler(
        connector, session.snapshot, debounce_ms=debounce_ms, parent=session
    )
    session.attach_scheduler(scheduler)
    return session
