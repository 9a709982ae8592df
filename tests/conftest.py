"""Shared test fixtures."""

import os

# Qt widgets are never shown; run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from taskpulse.database.connection import SQLiteConnection
from taskpulse.database.models import (
    DailyLog,
    EntityGraph,
    Group,
    Member,
    Milestone,
    Task,
)
from taskpulse.database.repository import GraphRepository
from taskpulse.database.schema import initialize_database
from taskpulse.sync.local_cache import LocalCache

_DB_ENV_VARS = ("DB_DRIVER", "DB_HOST", "DB_PORT", "DB_USER",
                "DB_PASSWORD", "DB_NAME")


@pytest.fixture(autouse=True)
def isolate_config(tmp_path, monkeypatch):
    """Keep tests away from real DB_* variables and settings files."""
    import taskpulse.config as config_mod
    for name in _DB_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_mod, "_DB_CONFIG_FILE", tmp_path / "db-config.json")
    monkeypatch.setattr(config_mod, "_SETTINGS_FILE", tmp_path / "settings.json")


@pytest.fixture
def db_path(tmp_path):
    """Provide a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path):
    """Provide an initialized database connection."""
    conn = SQLiteConnection(db_path)
    initialize_database(conn)
    return conn


@pytest.fixture
def repo(db):
    """Provide a graph repository over the initialized database."""
    return GraphRepository(db)


@pytest.fixture
def cache(tmp_path):
    return LocalCache(tmp_path / "cache" / "taskpulse_data_cache.json")


@pytest.fixture
def sample_graph():
    """One group, one member, one task with a log and a milestone."""
    return EntityGraph(
        groups=[Group("g1", "Eng")],
        members=[Member("m1", "Ann", "Dev", "", "g1")],
        tasks=[
            Task(
                id="t1",
                title="Build",
                outcome="Working build pipeline",
                assigned_to="m1",
                start_date="2024-03-01",
                due_date="2024-03-15",
                progress=50,
                logs=[DailyLog("l1", "2024-03-05T09:00:00+00:00", 50,
                               "Halfway there")],
                milestones=[Milestone("ms1", "Design", False)],
            ),
        ],
    )
