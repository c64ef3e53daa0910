"""
Pytest configuration and shared fixtures.
"""
import sqlite3

import pytest

from sqlgate.sql.executor import SqlitePool
from sqlgate.sql.policy import SecurityPolicy
from sqlgate.tools.executor import DirectToolExecutor


class FakeConnection:
    """Connection double that records calls and fails on demand."""

    def __init__(self):
        self.calls = []
        self.release_count = 0
        self.fail_begin = None
        self.fail_commit = None
        self.fail_rollback = None
        self.fail_release = None

    def execute(self, sql):
        self.calls.append(("execute", sql))
        return []

    def begin_transaction(self):
        self.calls.append("begin")
        if self.fail_begin:
            raise self.fail_begin

    def commit(self):
        self.calls.append("commit")
        if self.fail_commit:
            raise self.fail_commit

    def rollback(self):
        self.calls.append("rollback")
        if self.fail_rollback:
            raise self.fail_rollback

    def release(self):
        self.release_count += 1
        if self.fail_release:
            raise self.fail_release


class FakePool:
    def __init__(self, connection):
        self.connection = connection
        self.acquired = 0
        self.fail_acquire = None

    def acquire_connection(self):
        if self.fail_acquire:
            raise self.fail_acquire
        self.acquired += 1
        return self.connection


@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def fake_pool(fake_connection):
    return FakePool(fake_connection)


@pytest.fixture
def sample_db(tmp_path):
    """
    Create a temporary SQLite database with users and orders.
    """
    db_path = tmp_path / "test.sqlite"
    conn = sqlite3.connect(str(db_path))

    conn.executescript("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            note TEXT
        );
        CREATE TABLE orders (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            amount REAL NOT NULL,
            status TEXT DEFAULT 'pending'
        );
        CREATE INDEX idx_orders_user ON orders(user_id);
    """)

    conn.executemany(
        "INSERT INTO users (email, name, note) VALUES (?, ?, ?)",
        [
            ("alice@example.com", "Alice", None),
            ("bob@example.com", "Bob", "vip"),
            ("carol@example.com", "Carol", None),
        ],
    )
    conn.executemany(
        "INSERT INTO orders (user_id, amount, status) VALUES (?, ?, ?)",
        [
            (1, 25.50, "paid"),
            (1, 35.00, "pending"),
            (2, 15.00, "paid"),
            (3, 20.00, "shipped"),
            (3, 30.00, "paid"),
        ],
    )
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def pool(sample_db):
    p = SqlitePool(sample_db, pool_size=3, acquire_timeout=0.1)
    yield p
    p.close()


@pytest.fixture
def policy():
    return SecurityPolicy(max_select_rows=1000)


@pytest.fixture
def executor(pool, policy):
    return DirectToolExecutor(pool, policy)


def count_rows(pool, table):
    """Count rows through a fresh pooled connection (outside any transaction)."""
    conn = pool.acquire_connection()
    try:
        return int(conn.execute(f"SELECT COUNT(*) AS n FROM {table}").frame["n"][0])
    finally:
        conn.release()


@pytest.fixture
def row_count():
    return count_rows


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "mcp: marks tests related to MCP functionality")
