"""Repository layer — reads and fully replaces the stored entity graph.

The store is never patched row by row. ``write`` deletes every row and
re-inserts the whole graph inside one transaction, so the tables always hold
either the previous graph or the new one.
"""

import logging

from .connection import DatabaseConnection
from .mapper import FlatRecords, TABLES, flatten, reconstruct, table_columns
from .models import EntityGraph
from .schema import quote
from taskpulse.errors import TransactionFailure, Unreachable

logger = logging.getLogger(__name__)

# Children before parents so enforced foreign keys never trip
DELETE_ORDER = ["daily_logs", "milestones", "tasks", "members", "groups"]
INSERT_ORDER = ["groups", "members", "tasks", "daily_logs", "milestones"]


class GraphRepository:
    """Provides whole-graph reads and writes against one store."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def read(self) -> EntityGraph:
        records = FlatRecords()
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                for table in TABLES:
                    cursor.execute(
                        f"SELECT * FROM {quote(table)} ORDER BY position"
                    )
                    records.rows(table).extend(dict(r) for r in cursor.fetchall())
        except Unreachable:
            raise
        except Exception as e:
            raise Unreachable(f"Failed to read from database: {e}") from e
        return reconstruct(records)

    def write(self, graph: EntityGraph):
        """Replace everything in the store with ``graph``.

        Raises TransactionFailure after rolling back if any step fails.
        """
        records = flatten(graph)
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                for table in DELETE_ORDER:
                    cursor.execute(f"DELETE FROM {quote(table)}")
                for table in INSERT_ORDER:
                    self._insert_rows(cursor, table, records.rows(table))
        except Unreachable:
            raise
        except Exception as e:
            logger.error("Save failed, transaction rolled back: %s", e)
            raise TransactionFailure(f"Failed to save data to database: {e}") from e
        logger.info(
            "Stored %d groups, %d members, %d tasks",
            len(graph.groups), len(graph.members), len(graph.tasks),
        )

    def _insert_rows(self, cursor, table: str, rows: list[dict]):
        if not rows:
            return
        columns = table_columns(table)
        marks = ", ".join([self.db.placeholder] * len(columns))
        sql = (f"INSERT INTO {quote(table)} ({', '.join(columns)}) "
               f"VALUES ({marks})")
        cursor.executemany(sql, [tuple(row[c] for c in columns) for row in rows])
