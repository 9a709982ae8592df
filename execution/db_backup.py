"""Database backup script — writes a timestamped JSON export of the graph."""

import json
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from taskpulse.config import Config, resolve_connection
from taskpulse.database.connection import open_connection
from taskpulse.database.repository import GraphRepository

KEEP_BACKUPS = 10


def backup_database(backup_dir: Path | None = None) -> Path:
    """Export the stored graph to the backup directory with a timestamp."""
    backup_dir = backup_dir or Config.DATA_DIR / "backups"
    backup_dir.mkdir(parents=True, exist_ok=True)

    graph = GraphRepository(open_connection(resolve_connection())).read()

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_file = backup_dir / f"taskpulse_{timestamp}.json"
    backup_file.write_text(
        json.dumps(graph.to_dict(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    print(f"Backup created: {backup_file}")

    # Keep only the most recent backups
    backups = sorted(backup_dir.glob("taskpulse_*.json"), reverse=True)
    for old in backups[KEEP_BACKUPS:]:
        old.unlink()
        print(f"Removed old backup: {old.name}")
    return backup_file


if __name__ == "__main__":
    backup_database()
