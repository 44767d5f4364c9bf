"""Hour entry storage.

Two interchangeable stores are provided: a SQLite-backed store for real use
and an in-memory store seeded with fixed entries for mock mode and tests.
Both implement the HourStore interface consumed by the aggregator.
"""

import abc
import logging
import random
import sqlite3
import string
import time
from datetime import date as date_cls
from pathlib import Path

from .db import get_connection, init_db
from .errors import StorageError
from .models import HourEntry, utc_now_iso

logger = logging.getLogger(__name__)

MAX_HOURS_PER_ENTRY = 24

SEED_ENTRIES = [
    HourEntry("1", "John Smith", 8, "2025-11-22", "2025-11-22T09:00:00Z"),
    HourEntry("2", "Jane Doe", 7.5, "2025-11-22", "2025-11-22T09:30:00Z"),
    HourEntry("3", "Bob Wilson", 8, "2025-11-21", "2025-11-21T09:00:00Z"),
    HourEntry("4", "John Smith", 6, "2025-11-21", "2025-11-21T09:00:00Z"),
    HourEntry("5", "Jane Doe", 8, "2025-11-20", "2025-11-20T09:00:00Z"),
]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_entry_id() -> str:
    """Generate an id of the form '<epoch-ms>-<9 base36 chars>'."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


def validate_entry(staff_name: str, hours: float, date: str) -> None:
    """Raise ValueError if a log-hours request is invalid."""
    if not staff_name or not staff_name.strip():
        raise ValueError("staffName is required")
    if isinstance(hours, bool) or not isinstance(hours, (int, float)):
        raise ValueError("hours must be a number")
    if not 0 <= hours <= MAX_HOURS_PER_ENTRY:
        raise ValueError(f"hours must be between 0 and {MAX_HOURS_PER_ENTRY}")
    try:
        date_cls.fromisoformat(date)
    except (TypeError, ValueError):
        raise ValueError(f"date must be an ISO date (YYYY-MM-DD), got {date!r}")


def _sort_newest_first(entries: list[HourEntry]) -> list[HourEntry]:
    return sorted(entries, key=lambda e: e.created_at, reverse=True)


class HourStore(abc.ABC):
    """Storage interface for staff hour entries."""

    def log_hours(self, staff_name: str, hours: float, date: str) -> HourEntry:
        """Validate and store a new entry, returning it."""
        validate_entry(staff_name, hours, date)
        entry = HourEntry(
            id=new_entry_id(),
            staff_name=staff_name.strip(),
            hours=float(hours),
            date=date,
            created_at=utc_now_iso(),
        )
        self.save(entry)
        logger.debug("Logged %s hours for %s on %s", entry.hours, entry.staff_name, entry.date)
        return entry

    @abc.abstractmethod
    def save(self, entry: HourEntry) -> None:
        """Persist a single entry."""

    @abc.abstractmethod
    def get_hours(self, staff_name: str | None = None, date: str | None = None) -> list[HourEntry]:
        """Entries matching the optional filters, newest first."""

    @abc.abstractmethod
    def get_entries_by_date_range(self, start: date_cls, end: date_cls) -> list[HourEntry]:
        """Entries whose date lies within [start, end], latest date first."""


class MemoryHourStore(HourStore):
    """In-memory store, seeded with SEED_ENTRIES unless entries are given."""

    def __init__(self, entries: list[HourEntry] | None = None):
        self._entries = list(SEED_ENTRIES if entries is None else entries)

    def save(self, entry: HourEntry) -> None:
        self._entries.append(entry)

    def get_hours(self, staff_name: str | None = None, date: str | None = None) -> list[HourEntry]:
        result = list(self._entries)
        if staff_name:
            result = [e for e in result if e.staff_name == staff_name]
        if date:
            result = [e for e in result if e.date == date]
        return _sort_newest_first(result)

    def get_entries_by_date_range(self, start: date_cls, end: date_cls) -> list[HourEntry]:
        lo, hi = start.isoformat(), end.isoformat()
        result = [e for e in self._entries if lo <= e.date <= hi]
        return sorted(result, key=lambda e: e.date, reverse=True)


class SqliteHourStore(HourStore):
    """Store backed by the hour_entries table in SQLite.

    The schema is created on first use, so an unreachable database surfaces
    as StorageError from the operation that touches it.
    """

    def __init__(self, db_path: Path | None = None, create: bool = True):
        self.db_path = db_path
        self._schema_ready = not create

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        try:
            init_db(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Could not initialise database: {e}") from e
        self._schema_ready = True

    def save(self, entry: HourEntry) -> None:
        self._ensure_schema()
        try:
            with get_connection(self.db_path) as conn:
                conn.execute(
                    """INSERT INTO hour_entries (id, staff_name, hours, date, created_at)
                       VALUES (?, ?, ?, ?, ?)""",
                    (entry.id, entry.staff_name, entry.hours, entry.date, entry.created_at),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save hour entry: {e}") from e

    def get_hours(self, staff_name: str | None = None, date: str | None = None) -> list[HourEntry]:
        query = "SELECT id, staff_name, hours, date, created_at FROM hour_entries"
        clauses = []
        params: list = []
        if staff_name:
            clauses.append("staff_name = ?")
            params.append(staff_name)
        if date:
            clauses.append("date = ?")
            params.append(date)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY created_at DESC"
        return self._select(query, params)

    def get_entries_by_date_range(self, start: date_cls, end: date_cls) -> list[HourEntry]:
        return self._select(
            """SELECT id, staff_name, hours, date, created_at
               FROM hour_entries
               WHERE date >= ? AND date <= ?
               ORDER BY date DESC, created_at DESC""",
            [start.isoformat(), end.isoformat()],
        )

    def _select(self, query: str, params: list) -> list[HourEntry]:
        self._ensure_schema()
        try:
            with get_connection(self.db_path) as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Hour entry query failed: {e}") from e

        return [
            HourEntry(
                id=row["id"],
                staff_name=row["staff_name"],
                hours=row["hours"],
                date=row["date"],
                created_at=row["created_at"],
            )
            for row in rows
        ]
