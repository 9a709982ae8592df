"""Local cache — single-slot JSON mirror of the last graph the client saw."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from taskpulse.config import Config
from taskpulse.database.models import EntityGraph

logger = logging.getLogger(__name__)


class LocalCache:
    """Last-write-wins file store; never authoritative over the server."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else Path(Config.CACHE_PATH)
        self._lock = threading.Lock()

    def write(self, graph: EntityGraph):
        """Replace the cached graph atomically."""
        payload = json.dumps(graph.to_dict(), ensure_ascii=False, indent=2)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise

    def read(self) -> Optional[EntityGraph]:
        """Return the cached graph, or None if absent or unreadable."""
        with self._lock:
            if not self.path.exists():
                return None
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                return EntityGraph.from_dict(data)
            except (json.JSONDecodeError, OSError, ValueError, TypeError) as e:
                logger.warning("Ignoring corrupt cache %s: %s", self.path, e)
                return None

    def clear(self):
        with self._lock:
            self.path.unlink(missing_ok=True)

    @property
    def exists(self) -> bool:
        return self.path.exists()
