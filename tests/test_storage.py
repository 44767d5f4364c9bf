import re
import sqlite3
from datetime import date

import pytest

from ecoops import db
from ecoops.errors import StorageError
from ecoops.models import HourEntry
from ecoops.storage import SEED_ENTRIES, MemoryHourStore, SqliteHourStore, new_entry_id


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryHourStore([])
    return SqliteHourStore(tmp_path / "ecoops.db")


def test_log_hours_returns_entry(store):
    entry = store.log_hours("  Jane Doe ", 7.5, "2025-11-22")

    assert entry.staff_name == "Jane Doe"
    assert entry.hours == 7.5
    assert entry.date == "2025-11-22"
    assert entry.created_at
    assert store.get_hours() == [entry]


@pytest.mark.parametrize(
    "staff_name, hours, entry_date",
    [
        ("", 8, "2025-11-22"),
        ("Jane Doe", -1, "2025-11-22"),
        ("Jane Doe", 25, "2025-11-22"),
        ("Jane Doe", "8", "2025-11-22"),
        ("Jane Doe", 8, "22/11/2025"),
    ],
)
def test_log_hours_validation(store, staff_name, hours, entry_date):
    with pytest.raises(ValueError):
        store.log_hours(staff_name, hours, entry_date)
    assert store.get_hours() == []


def test_date_range_is_inclusive(store):
    for entry in [
        HourEntry("1", "A", 1, "2025-11-15", "2025-11-15T09:00:00Z"),
        HourEntry("2", "A", 2, "2025-11-16", "2025-11-16T09:00:00Z"),
        HourEntry("3", "B", 3, "2025-11-20", "2025-11-20T09:00:00Z"),
        HourEntry("4", "B", 4, "2025-11-23", "2025-11-23T09:00:00Z"),
        HourEntry("5", "B", 5, "2025-11-24", "2025-11-24T09:00:00Z"),
    ]:
        store.save(entry)

    entries = store.get_entries_by_date_range(date(2025, 11, 16), date(2025, 11, 23))

    assert [e.id for e in entries] == ["4", "3", "2"]


def test_get_hours_filters(store):
    for entry in SEED_ENTRIES:
        store.save(entry)

    jane = store.get_hours(staff_name="Jane Doe")
    assert [e.id for e in jane] == ["2", "5"]

    day = store.get_hours(date="2025-11-21")
    assert {e.id for e in day} == {"3", "4"}

    assert store.get_hours(staff_name="Jane Doe", date="2025-11-20")[0].id == "5"


def test_memory_store_seeded_by_default():
    store = MemoryHourStore()

    assert len(store.get_hours()) == len(SEED_ENTRIES)


def test_memory_store_instances_are_isolated():
    first = MemoryHourStore()
    first.log_hours("New Person", 4, "2025-11-22")

    assert len(MemoryHourStore().get_hours()) == len(SEED_ENTRIES)


def test_sqlite_missing_schema_raises_storage_error(tmp_path):
    store = SqliteHourStore(tmp_path / "empty.db", create=False)

    with pytest.raises(StorageError):
        store.get_entries_by_date_range(date(2025, 11, 16), date(2025, 11, 23))


def test_sqlite_unreachable_path_fails_on_use(tmp_path):
    store = SqliteHourStore(tmp_path / "missing-dir" / "ecoops.db")

    with pytest.raises(StorageError, match="Could not initialise database"):
        store.get_entries_by_date_range(date(2025, 11, 16), date(2025, 11, 23))


def test_sqlite_duplicate_id_raises_storage_error(tmp_path):
    store = SqliteHourStore(tmp_path / "ecoops.db")
    store.save(SEED_ENTRIES[0])

    with pytest.raises(StorageError):
        store.save(SEED_ENTRIES[0])


def test_db_stats(tmp_path):
    path = tmp_path / "ecoops.db"
    store = SqliteHourStore(path)
    for entry in SEED_ENTRIES:
        store.save(entry)

    stats = db.get_stats(path)

    assert stats["hour_entries"] == {"count": 5, "earliest": "2025-11-20", "latest": "2025-11-22"}
    assert stats["hours_by_staff"]["Jane Doe"] == {"count": 2, "hours": 15.5}
    assert stats["days"] == {"count": 3, "peak_hours": 15.5}


def test_daily_hours_view(tmp_path):
    path = tmp_path / "ecoops.db"
    store = SqliteHourStore(path)
    for entry in SEED_ENTRIES:
        store.save(entry)

    with db.get_connection(path) as conn:
        row = conn.execute("SELECT * FROM daily_hours WHERE date = '2025-11-22'").fetchone()

    assert isinstance(row, sqlite3.Row)
    assert row["total_hours"] == 15.5
    assert row["staff_count"] == 2


def test_new_entry_id_format():
    assert re.fullmatch(r"\d{13}-[0-9a-z]{9}", new_entry_id())
