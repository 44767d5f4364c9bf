"""Database connection and schema management."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "eco-ops" / "ecoops.db"

SCHEMA = """
-- Staff hour entries (one row per logged block of work)
CREATE TABLE IF NOT EXISTS hour_entries (
    id TEXT PRIMARY KEY,
    staff_name TEXT NOT NULL,
    hours REAL NOT NULL CHECK (hours >= 0),
    date TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_hours_date ON hour_entries(date);
CREATE INDEX IF NOT EXISTS idx_hours_staff ON hour_entries(staff_name);
CREATE INDEX IF NOT EXISTS idx_hours_created ON hour_entries(created_at);

-- View: Daily totals across all staff
CREATE VIEW IF NOT EXISTS daily_hours AS
SELECT
    date,
    SUM(hours) as total_hours,
    COUNT(DISTINCT staff_name) as staff_count,
    COUNT(*) as entry_count
FROM hour_entries
GROUP BY date;
"""


def get_db_path() -> Path:
    """Get the database path, creating parent directories if needed."""
    db_path = Path(DEFAULT_DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


@contextmanager
def get_connection(db_path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with row factory enabled."""
    path = db_path or get_db_path()
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        conn.executescript(SCHEMA)
        conn.commit()


def get_stats(db_path: Path | None = None) -> dict:
    """Get database statistics."""
    with get_connection(db_path) as conn:
        stats = {}

        row = conn.execute(
            "SELECT COUNT(*) as count, MIN(date) as earliest, MAX(date) as latest FROM hour_entries"
        ).fetchone()
        stats["hour_entries"] = {
            "count": row["count"],
            "earliest": row["earliest"],
            "latest": row["latest"],
        }

        row = conn.execute(
            "SELECT COUNT(*) as count, MAX(total_hours) as peak_hours FROM daily_hours"
        ).fetchone()
        stats["days"] = {"count": row["count"], "peak_hours": row["peak_hours"]}

        # By staff member
        rows = conn.execute(
            """SELECT staff_name, COUNT(*) as count, SUM(hours) as hours
               FROM hour_entries GROUP BY staff_name ORDER BY staff_name"""
        ).fetchall()
        stats["hours_by_staff"] = {
            row["staff_name"]: {"count": row["count"], "hours": round(row["hours"], 2)}
            for row in rows
        }

        return stats
