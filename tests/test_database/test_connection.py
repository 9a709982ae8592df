"""Tests for DatabaseConnection backends and schema initialization."""

import sqlite3

import pytest

from taskpulse.config import ConnectionConfig
from taskpulse.database.connection import (
    PostgresConnection,
    SQLiteConnection,
    open_connection,
)
from taskpulse.database.schema import TABLE_NAMES, initialize_database


class TestSQLiteConnection:
    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "store.db"
        SQLiteConnection(path)
        assert path.parent.exists()

    def test_commit_on_success(self, db):
        with db.get_connection() as conn:
            conn.execute('INSERT INTO "groups" (id, name) VALUES (?, ?)',
                         ("g1", "Eng"))
        assert db.execute('SELECT id, name FROM "groups"') == [
            {"id": "g1", "name": "Eng"}
        ]

    def test_rollback_on_error(self, db):
        with pytest.raises(RuntimeError):
            with db.get_connection() as conn:
                conn.execute('INSERT INTO "groups" (id, name) VALUES (?, ?)',
                             ("g1", "Eng"))
                raise RuntimeError("boom")
        assert db.execute('SELECT * FROM "groups"') == []

    def test_foreign_keys_enforced(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            db.execute(
                "INSERT INTO milestones (id, task_id, title) VALUES (?, ?, ?)",
                ("ms1", "missing-task", "x"),
            )

    def test_execute_without_rows_returns_empty(self, db):
        assert db.execute('DELETE FROM "groups"') == []


class TestSchema:
    def test_creates_all_tables(self, db):
        rows = db.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        assert set(TABLE_NAMES) <= {r["name"] for r in rows}

    def test_initialize_is_idempotent(self, db, repo, sample_graph):
        repo.write(sample_graph)
        initialize_database(db)
        initialize_database(db)
        assert repo.read() == sample_graph


class TestOpenConnection:
    def test_sqlite_backend(self, tmp_path):
        config = ConnectionConfig(driver="sqlite", database=str(tmp_path / "a.db"))
        conn = open_connection(config)
        assert isinstance(conn, SQLiteConnection)
        assert conn.placeholder == "?"

    def test_postgresql_backend(self):
        config = ConnectionConfig(host="h", user="u", database="d")
        conn = open_connection(config)
        assert isinstance(conn, PostgresConnection)
        assert conn.placeholder == "%s"

    def test_unknown_driver(self):
        with pytest.raises(ValueError):
            open_connection(ConnectionConfig(driver="oracle", database="x"))
