"""Database connection management with context manager.

Two backends share one interface: SQLite for local and test stores, and
PostgreSQL for a deployed server. Each declares its DB-API placeholder so
callers can build parameterised statements for either.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from taskpulse.config import ConnectionConfig
from taskpulse.errors import Unreachable

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Opens a connection per unit of work; commits or rolls back as a whole."""

    placeholder = "?"

    def _connect(self):
        raise NotImplementedError

    @contextmanager
    def get_connection(self):
        """Yield a connection that auto-commits or rolls back."""
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute(self, sql: str, params: tuple = ()) -> list[dict]:
        """Run a single statement and return any rows as dicts."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            if cursor.description is None:
                return []
            return [dict(r) for r in cursor.fetchall()]

    def execute_statements(self, statements: list[str]):
        """Run several statements in one transaction."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            for sql in statements:
                cursor.execute(sql)


class SQLiteConnection(DatabaseConnection):
    """SQLite file store with foreign key enforcement."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self):
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise Unreachable(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def __repr__(self):
        return f"SQLiteConnection({str(self.db_path)!r})"


class PostgresConnection(DatabaseConnection):
    """PostgreSQL server reached with psycopg2."""

    placeholder = "%s"

    def __init__(self, config: ConnectionConfig):
        self.config = config

    def _connect(self):
        import psycopg2
        import psycopg2.extras

        try:
            return psycopg2.connect(
                host=self.config.host,
                port=self.config.effective_port,
                user=self.config.user,
                password=self.config.password,
                dbname=self.config.database,
                cursor_factory=psycopg2.extras.RealDictCursor,
            )
        except psycopg2.Error as e:
            logger.error("PostgreSQL connection to %s failed: %s",
                         self.config.host, e)
            raise Unreachable(f"Cannot connect to {self.config.host}: {e}") from e

    def __repr__(self):
        return (f"PostgresConnection({self.config.host!r}, "
                f"{self.config.database!r})")


def open_connection(config: ConnectionConfig) -> DatabaseConnection:
    """Pick the backend named by ``config.driver``."""
    if config.driver == "sqlite":
        return SQLiteConnection(config.database)
    if config.driver == "postgresql":
        return PostgresConnection(config)
    raise ValueError(f"Unsupported database driver: {config.driver!r}")
