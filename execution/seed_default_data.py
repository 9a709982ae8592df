"""Seed the configured store with the sample team and tasks.

Creates any missing tables, then replaces whatever the store holds with the
default dataset (4 groups, 4 members, 6 tasks).

Run:
    python -m execution.seed_default_data       (from project root)
    python execution/seed_default_data.py       (direct)

WARNING: This REPLACES all stored data.
"""

import os
import sys

# Ensure project src is on the path
_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(_ROOT, "src"))

from taskpulse.config import resolve_connection
from taskpulse.database.connection import open_connection
from taskpulse.database.repository import GraphRepository
from taskpulse.database.schema import initialize_database
from taskpulse.utils.constants import default_graph
from taskpulse.utils.log import configure_logging


def seed():
    config = resolve_connection()
    db = open_connection(config)
    initialize_database(db)
    graph = default_graph()
    GraphRepository(db).write(graph)
    print(f"Seeded {len(graph.groups)} groups, {len(graph.members)} members, "
          f"{len(graph.tasks)} tasks into {db!r}")


if __name__ == "__main__":
    configure_logging()
    seed()
