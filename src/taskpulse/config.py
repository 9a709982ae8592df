"""Application configuration — loads .env, then overrides from settings.json.

Database connection parameters are resolved separately by
:func:`resolve_connection`, which consults the process environment first and
the setup-flow file ``db-config.json`` second, reading both on every call.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv

from taskpulse.errors import NotConfigured

logger = logging.getLogger(__name__)

# Find the project root (where .env lives)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# Runtime settings file for in-app configuration
_SETTINGS_FILE = _PROJECT_ROOT / "data" / "settings.json"

# Connection parameters written by the setup flow
_DB_CONFIG_FILE = Path(
    os.getenv("TASKPULSE_DB_CONFIG_FILE",
              str(_PROJECT_ROOT / "data" / "db-config.json"))
)

SUPPORTED_DRIVERS = ("postgresql", "sqlite")
DEFAULT_PORTS = {"postgresql": 5432}
DEFAULT_DATABASE = "taskpulse"


def _read_json(path: Path) -> dict:
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable config file %s: %s", path, e)
            return {}
        return data if isinstance(data, dict) else {}
    return {}


def _write_json(path: Path, data: dict):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _load_settings() -> dict:
    """Load saved runtime settings from JSON file."""
    return _read_json(_SETTINGS_FILE)


def _save_settings(settings: dict):
    """Persist runtime settings to JSON file."""
    _write_json(_SETTINGS_FILE, settings)


# Load saved settings once at import time
_runtime = _load_settings()


class Config:
    """Central configuration: .env defaults, settings.json overrides."""

    # Paths
    PROJECT_ROOT: Path = _PROJECT_ROOT
    DATA_DIR: Path = Path(
        os.getenv("TASKPULSE_DATA_DIR", str(_PROJECT_ROOT / "data"))
    )
    CACHE_PATH: Path = Path(
        os.getenv("TASKPULSE_CACHE_PATH", str(DATA_DIR / "taskpulse_data_cache.json"))
    )

    # Client side
    API_BASE_URL: str = _runtime.get(
        "api_base_url",
        os.getenv("TASKPULSE_API_URL", "http://localhost:3001/api"),
    )
    API_TIMEOUT: float = float(os.getenv("TASKPULSE_API_TIMEOUT", "10"))
    SYNC_DEBOUNCE_MS: int = int(os.getenv("TASKPULSE_SYNC_DEBOUNCE_MS", "1000"))

    # Server side
    SERVER_HOST: str = os.getenv("HOST", "0.0.0.0")
    SERVER_PORT: int = int(os.getenv("PORT", "3001"))

    # LM Studio (settings.json overrides .env)
    LM_STUDIO_BASE_URL: str = _runtime.get(
        "lm_studio_base_url",
        os.getenv("LM_STUDIO_BASE_URL", "http://localhost:1234/v1"),
    )
    LM_STUDIO_API_KEY: str = _runtime.get(
        "lm_studio_api_key",
        os.getenv("LM_STUDIO_API_KEY", ""),
    )
    LM_STUDIO_MODEL: str = _runtime.get(
        "lm_studio_model",
        os.getenv("LM_STUDIO_MODEL", "local-model"),
    )
    LM_STUDIO_TIMEOUT: int = int(_runtime.get(
        "lm_studio_timeout",
        os.getenv("LM_STUDIO_TIMEOUT", "60"),
    ))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def update_llm_settings(cls, base_url: str, api_key: str,
                            model: str, timeout: int):
        """Update LLM settings at runtime and persist to disk."""
        cls.LM_STUDIO_BASE_URL = base_url
        cls.LM_STUDIO_API_KEY = api_key
        cls.LM_STUDIO_MODEL = model
        cls.LM_STUDIO_TIMEOUT = timeout

        settings = _load_settings()
        settings["lm_studio_base_url"] = base_url
        settings["lm_studio_api_key"] = api_key
        settings["lm_studio_model"] = model
        settings["lm_studio_timeout"] = timeout
        _save_settings(settings)

    @classmethod
    def update_api_base_url(cls, url: str):
        """Point the client at a different server and persist."""
        cls.API_BASE_URL = url
        settings = _load_settings()
        settings["api_base_url"] = url
        _save_settings(settings)


# ── Database connection parameters ──────────────────────────────


def _parse_port(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid database port %r", value)
        return None


@dataclass
class ConnectionConfig:
    """Parameters needed to open the relational store."""

    host: str = ""
    port: Optional[int] = None
    user: str = ""
    password: str = ""
    database: str = ""
    driver: str = "postgresql"

    @classmethod
    def from_dict(cls, data: dict) -> "ConnectionConfig":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        values["port"] = _parse_port(values.get("port"))
        values["driver"] = str(values.get("driver") or "postgresql").lower()
        for key in ("host", "user", "password", "database"):
            if key in values:
                values[key] = str(values[key])
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def effective_port(self) -> Optional[int]:
        return self.port or DEFAULT_PORTS.get(self.driver)

    def missing_fields(self) -> list[str]:
        """Required fields that are still empty for this driver."""
        if self.driver not in SUPPORTED_DRIVERS:
            return ["driver"]
        if self.driver == "sqlite":
            required = ("database",)
        else:
            required = ("host", "user", "database")
        return [name for name in required if not getattr(self, name)]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def masked(self) -> dict:
        """Copy safe to hand to untrusted callers."""
        data = self.to_dict()
        data["port"] = self.effective_port
        data["password"] = "***" if self.password else ""
        return data


def _from_environment() -> Optional[ConnectionConfig]:
    """Deployed operation: DB_* variables, immutable at runtime."""
    driver = os.getenv("DB_DRIVER", "postgresql").lower()
    if driver == "sqlite":
        database = os.getenv("DB_NAME", "")
        if not database:
            return None
        return ConnectionConfig(driver="sqlite", database=database)

    host = os.getenv("DB_HOST", "")
    user = os.getenv("DB_USER", "")
    if not (host and user):
        return None
    return ConnectionConfig(
        host=host,
        port=_parse_port(os.getenv("DB_PORT")),
        user=user,
        password=os.getenv("DB_PASSWORD", ""),
        database=os.getenv("DB_NAME", DEFAULT_DATABASE),
        driver=driver,
    )


def _from_settings_file() -> Optional[ConnectionConfig]:
    """Interactive first-run configuration saved by the setup flow."""
    data = _read_json(_DB_CONFIG_FILE)
    if not data:
        return None
    return ConnectionConfig.from_dict(data)


# Highest precedence first
_CONNECTION_SOURCES: list[Callable[[], Optional[ConnectionConfig]]] = [
    _from_environment,
    _from_settings_file,
]


def resolve_connection() -> ConnectionConfig:
    """Return the first complete connection config, or raise NotConfigured.

    Every source is queried fresh on each call.
    """
    for source in _CONNECTION_SOURCES:
        config = source()
        if config is not None and config.is_complete:
            return config
    raise NotConfigured()


def connection_status() -> dict:
    """Configuration status with the password masked."""
    try:
        config = resolve_connection()
    except NotConfigured:
        return {"configured": False, "config": {}}
    return {"configured": True, "config": config.masked()}


def save_connection(config: ConnectionConfig):
    """Persist connection parameters to db-config.json.

    Never touches the process environment, so deployed DB_* variables keep
    precedence over anything saved here.
    """
    _write_json(_DB_CONFIG_FILE, config.to_dict())
    logger.info("Saved %s connection settings to %s",
                config.driver, _DB_CONFIG_FILE)
