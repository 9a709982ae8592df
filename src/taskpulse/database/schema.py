"""Database schema definition and initialization."""

# Each statement is a separate string to avoid executescript issues.
# Column types are the subset SQLite and PostgreSQL share.
_SCHEMA_STATEMENTS = [
    """CREATE TABLE IF NOT EXISTS "groups" (
        id TEXT PRIMARY KEY,
        name TEXT,
        position INTEGER NOT NULL DEFAULT 0
    )""",

    # group_id is a soft reference; the edit session validates it
    """CREATE TABLE IF NOT EXISTS members (
        id TEXT PRIMARY KEY,
        name TEXT,
        role TEXT,
        avatar TEXT,
        group_id TEXT,
        position INTEGER NOT NULL DEFAULT 0
    )""",

    # assigned_to may point at a deleted member
    """CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        title TEXT,
        outcome TEXT,
        assigned_to TEXT,
        start_date TEXT,
        due_date TEXT,
        progress INTEGER,
        position INTEGER NOT NULL DEFAULT 0
    )""",

    """CREATE TABLE IF NOT EXISTS daily_logs (
        id TEXT NOT NULL,
        task_id TEXT NOT NULL,
        date TEXT,
        progress_snapshot INTEGER,
        note TEXT,
        position INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (task_id, id),
        FOREIGN KEY (task_id) REFERENCES tasks(id)
    )""",

    """CREATE TABLE IF NOT EXISTS milestones (
        id TEXT NOT NULL,
        task_id TEXT NOT NULL,
        title TEXT,
        is_completed BOOLEAN NOT NULL DEFAULT FALSE,
        position INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (task_id, id),
        FOREIGN KEY (task_id) REFERENCES tasks(id)
    )""",
]

TABLE_NAMES = ["groups", "members", "tasks", "daily_logs", "milestones"]


def quote(table: str) -> str:
    """Quote a table name; ``groups`` is a keyword in several dialects."""
    return f'"{table}"'


def initialize_database(db_connection):
    """Create any missing tables. Safe to call repeatedly."""
    db_connection.execute_statements(_SCHEMA_STATEMENTS)
