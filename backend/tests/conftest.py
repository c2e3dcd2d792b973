"""
Shared fixtures: temporary SQLite databases and API clients.
"""
import sqlite3
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from sqlite_eda.app import create_app
from sqlite_eda.core.config import Settings
from sqlite_eda.core.database import SQLiteDatabase

ORDER_STATUSES = ["pending", "shipped", "delivered"]
FILE_PAYLOADS = [b"\xff\xfe\x01", b"\xff\xfe\x01", b"\xff\xfe\x01", b"\x00\x10", bytes(range(20))]


def _build_sample_database(path):
    conn = sqlite3.connect(path)
    try:
        conn.execute(
            "CREATE TABLE orders ("
            "id INTEGER PRIMARY KEY, status TEXT NOT NULL, amount REAL, created_at TEXT)"
        )
        start = date(2024, 1, 1)
        conn.executemany(
            "INSERT INTO orders (id, status, amount, created_at) VALUES (?, ?, ?, ?)",
            [
                (i, ORDER_STATUSES[i % 3], 10 + i * 2.5, (start + timedelta(days=i - 1)).isoformat())
                for i in range(1, 101)
            ],
        )

        conn.execute("CREATE TABLE numbers (n INTEGER)")
        conn.executemany("INSERT INTO numbers (n) VALUES (?)", [(i,) for i in range(1, 11)])

        conn.execute("CREATE TABLE letters (letter TEXT)")
        conn.executemany("INSERT INTO letters (letter) VALUES (?)", [("a",), ("a",), ("b",), ("c",)])

        conn.execute("CREATE TABLE events (happened_on TEXT, label TEXT)")
        conn.executemany(
            "INSERT INTO events (happened_on, label) VALUES (?, ?)",
            [
                ("2023-12-30", "x"),
                ("2024-01-05", "y"),
                ("2024-01-20", "y"),
                ("2024-03-01", None),
            ],
        )

        conn.execute("CREATE TABLE sparse (maybe TEXT, flag INTEGER)")
        conn.executemany(
            "INSERT INTO sparse (maybe, flag) VALUES (?, ?)",
            [(None, 1), ("hello", 0), (None, 1)],
        )

        conn.execute("CREATE TABLE files (id INTEGER PRIMARY KEY, payload BLOB)")
        conn.executemany(
            "INSERT INTO files (id, payload) VALUES (?, ?)",
            [(i, blob) for i, blob in enumerate(FILE_PAYLOADS, start=1)],
        )

        conn.execute("CREATE TABLE empty_table (id INTEGER PRIMARY KEY, name TEXT)")
        conn.commit()
    finally:
        conn.close()


@pytest.fixture
def db_path(tmp_path):
    """Path of a freshly built sample database."""
    path = tmp_path / "sample.db"
    _build_sample_database(path)
    return path


@pytest.fixture
def database(db_path):
    """Connected SQLiteDatabase over the sample database."""
    db = SQLiteDatabase(db_path)
    yield db
    db.close()


@pytest.fixture
def settings(db_path):
    return Settings(database_path=str(db_path), rate_limit_per_minute=1000)


@pytest.fixture
def client(settings, database):
    """Test client for an app bound to the sample database."""
    return TestClient(create_app(settings, database))


@pytest.fixture
def unconfigured_client():
    """Test client for an app started without a database."""
    return TestClient(create_app(Settings()))
