"""RemoteConnector — HTTP client for the TaskPulse server.

Reads fall back to the local cache and then to the seeded dataset when the
server cannot be used; only a missing database configuration is raised to
the caller. Saves always mirror to the local cache first and report where
the data ended up through a SaveOutcome instead of raising.
"""

import logging
from dataclasses import dataclass

import httpx

from taskpulse.config import Config, ConnectionConfig
from taskpulse.database.models import EntityGraph
from taskpulse.errors import ConnectorError, NotConfigured
from taskpulse.sync.local_cache import LocalCache
from taskpulse.utils.constants import (
    DB_NOT_CONFIGURED,
    MODE_LOCAL,
    MODE_REMOTE,
    default_graph,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveOutcome:
    ok: bool
    mode: str  # MODE_REMOTE or MODE_LOCAL

    @property
    def is_remote(self) -> bool:
        return self.mode == MODE_REMOTE


def _error_code(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    return body.get("error", "") if isinstance(body, dict) else ""


class RemoteConnector:
    """Talks to the server's /api endpoints."""

    def __init__(self, base_url: str | None = None,
                 cache: LocalCache | None = None,
                 client: httpx.Client | None = None):
        self.cache = cache or LocalCache()
        self.client = client or httpx.Client(
            base_url=base_url or Config.API_BASE_URL,
            timeout=Config.API_TIMEOUT,
        )
        # Where the last fetch_graph result came from
        self.last_source = ""

    # ── Entity graph ────────────────────────────────────────────

    def fetch_graph(self) -> EntityGraph:
        """Load the graph from the server, else the cache, else defaults.

        Raises NotConfigured when the server has no database settings.
        """
        try:
            response = self.client.get("/data")
        except httpx.HTTPError as e:
            return self._fallback(f"server unreachable: {e}")

        if response.status_code == 503 and _error_code(response) == DB_NOT_CONFIGURED:
            raise NotConfigured()
        if not response.is_success:
            return self._fallback(f"server returned {response.status_code}")

        try:
            graph = EntityGraph.from_dict(response.json())
        except (ValueError, TypeError) as e:
            return self._fallback(f"malformed response: {e}")

        try:
            self.cache.write(graph)
        except OSError as e:
            logger.error("Could not refresh local cache: %s", e)
        self.last_source = "remote"
        return graph

    def load_offline(self) -> EntityGraph:
        """The cached graph, or the seeded dataset when nothing is cached."""
        cached = self.cache.read()
        if cached is not None:
            self.last_source = "cache"
            return cached
        self.last_source = "defaults"
        return default_graph()

    def _fallback(self, reason: str) -> EntityGraph:
        logger.warning("Data fetch failed (%s); using local fallback", reason)
        return self.load_offline()

    def save_graph(self, graph: EntityGraph) -> SaveOutcome:
        """Mirror to the cache, then replace the server's copy."""
        try:
            self.cache.write(graph)
        except OSError as e:
            logger.error("Could not write local cache: %s", e)

        try:
            response = self.client.post("/data", json=graph.to_dict())
        except httpx.HTTPError as e:
            logger.warning("Save kept local, server unreachable: %s", e)
            return SaveOutcome(False, MODE_LOCAL)

        if not response.is_success:
            logger.warning("Save kept local, server returned %d: %s",
                           response.status_code, _error_code(response))
            return SaveOutcome(False, MODE_LOCAL)
        return SaveOutcome(True, MODE_REMOTE)

    def check_reachable(self) -> bool:
        """True when the server can actually serve data."""
        try:
            return self.client.get("/data").is_success
        except httpx.HTTPError:
            return False

    # ── Configuration ───────────────────────────────────────────

    def get_config(self) -> dict:
        """Server configuration status; empty when the server is down."""
        try:
            response = self.client.get("/config")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Config fetch failed: %s", e)
            return {}

    def save_config(self, config: ConnectionConfig | dict) -> dict:
        payload = config.to_dict() if isinstance(config, ConnectionConfig) else dict(config)
        try:
            response = self.client.post("/config", json=payload)
        except httpx.HTTPError as e:
            raise ConnectorError(f"Failed to save config: {e}") from e
        if not response.is_success:
            raise ConnectorError("Failed to save config")
        return response.json()

    def initialize_schema(self) -> dict:
        try:
            response = self.client.post("/init")
        except httpx.HTTPError as e:
            raise ConnectorError(f"Init failed: {e}") from e
        if not response.is_success:
            raise ConnectorError(_error_code(response) or "Init failed")
        return response.json()

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
