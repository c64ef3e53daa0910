"""
Tests for the SQLite connection pool.
Covers acquisition, release, transactions and driver error mapping.
"""
import pandas as pd
import pytest

from sqlgate.errors import DatabaseConnectionError, DatabaseError
from sqlgate.sql.executor import QueryResult, SqlitePool


class TestAcquire:
    """Test checking connections out of the pool."""

    def test_missing_db(self, tmp_path):
        """Test error when database doesn't exist."""
        pool = SqlitePool(tmp_path / "missing.sqlite")
        with pytest.raises(DatabaseConnectionError, match="SQLite DB not found at"):
            pool.acquire_connection()
        assert not (tmp_path / "missing.sqlite").exists()

    def test_missing_db_frees_slot(self, tmp_path):
        pool = SqlitePool(tmp_path / "missing.sqlite", pool_size=1, acquire_timeout=0.05)
        for _ in range(3):
            with pytest.raises(DatabaseConnectionError, match="not found"):
                pool.acquire_connection()

    def test_database_name(self, pool):
        assert pool.database_name == "test"

    def test_exhaustion_times_out(self, sample_db):
        pool = SqlitePool(sample_db, pool_size=1, acquire_timeout=0.05)
        conn = pool.acquire_connection()
        with pytest.raises(DatabaseConnectionError, match="Timed out"):
            pool.acquire_connection()
        conn.release()
        pool.acquire_connection().release()
        pool.close()

    def test_closed_pool(self, pool):
        pool.close()
        assert pool.closed
        with pytest.raises(DatabaseConnectionError, match="closed"):
            pool.acquire_connection()

    def test_connection_reused(self, sample_db):
        pool = SqlitePool(sample_db, pool_size=1)
        first = pool.acquire_connection()
        raw = first._raw
        first.release()
        second = pool.acquire_connection()
        assert second._raw is raw
        second.release()
        pool.close()


class TestRelease:
    """Test returning connections."""

    def test_release_is_idempotent(self, sample_db):
        pool = SqlitePool(sample_db, pool_size=1, acquire_timeout=0.05)
        conn = pool.acquire_connection()
        conn.release()
        conn.release()
        assert conn.released
        # a double release must not free a second slot
        held = pool.acquire_connection()
        with pytest.raises(DatabaseConnectionError):
            pool.acquire_connection()
        held.release()
        pool.close()

    def test_released_connection_unusable(self, pool):
        conn = pool.acquire_connection()
        conn.release()
        with pytest.raises(DatabaseConnectionError, match="already been released"):
            conn.execute("SELECT 1")

    def test_open_transaction_rolled_back_on_release(self, pool, row_count):
        conn = pool.acquire_connection()
        conn.begin_transaction()
        conn.execute("DELETE FROM orders WHERE id = 1")
        assert conn.in_transaction
        conn.release()
        assert row_count(pool, "orders") == 5

    def test_release_after_close_closes(self, pool):
        conn = pool.acquire_connection()
        pool.close()
        conn.release()
        assert conn.released


class TestExecute:
    """Test statement execution and results."""

    def test_select_returns_frame(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute("SELECT id, name FROM users ORDER BY id")
        finally:
            conn.release()
        assert isinstance(result, QueryResult)
        assert result.returns_rows
        assert isinstance(result.frame, pd.DataFrame)
        assert result.columns == ("id", "name")
        assert result.row_count == 3
        assert list(result.frame["name"]) == ["Alice", "Bob", "Carol"]

    def test_empty_select(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute("SELECT id FROM users WHERE id = 999")
        finally:
            conn.release()
        assert result.returns_rows
        assert result.row_count == 0
        assert result.columns == ("id",)

    def test_insert_reports_id(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute("INSERT INTO users (email, name) VALUES ('dave@example.com', 'Dave')")
        finally:
            conn.release()
        assert not result.returns_rows
        assert result.affected_rows == 1
        assert result.last_insert_id == 4

    def test_update_reports_affected(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute("UPDATE orders SET status = 'paid' WHERE user_id = 1")
        finally:
            conn.release()
        assert result.affected_rows == 2

    def test_execute_script(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute_script(
                "UPDATE orders SET status='x' WHERE id=1; DELETE FROM orders WHERE id=2;"
            )
        finally:
            conn.release()
        assert result.affected_rows == 2

    def test_syntax_error(self, pool):
        conn = pool.acquire_connection()
        try:
            with pytest.raises(DatabaseError) as exc_info:
                conn.execute("SELEC nonsense")
        finally:
            conn.release()
        assert "syntax error" in exc_info.value.info.message
        assert exc_info.value.info.statement == "SELEC nonsense"
        assert exc_info.value.info.code

    def test_constraint_violation(self, pool):
        conn = pool.acquire_connection()
        try:
            with pytest.raises(DatabaseError, match="UNIQUE"):
                conn.execute("INSERT INTO users (email, name) VALUES ('alice@example.com', 'A2')")
        finally:
            conn.release()


class TestConnectionTransactions:
    """Test BEGIN/COMMIT/ROLLBACK on a pooled connection."""

    def test_commit_visible_elsewhere(self, pool, row_count):
        conn = pool.acquire_connection()
        conn.begin_transaction()
        conn.execute("DELETE FROM orders WHERE id = 1")
        assert row_count(pool, "orders") == 5
        conn.commit()
        conn.release()
        assert row_count(pool, "orders") == 4

    def test_rollback_discards(self, pool, row_count):
        conn = pool.acquire_connection()
        conn.begin_transaction()
        conn.execute("DELETE FROM orders WHERE id = 1")
        conn.rollback()
        assert not conn.in_transaction
        conn.release()
        assert row_count(pool, "orders") == 5

    def test_commit_without_begin(self, pool):
        conn = pool.acquire_connection()
        try:
            with pytest.raises(DatabaseError):
                conn.commit()
        finally:
            conn.release()

    def test_script_stays_in_transaction(self, pool, row_count):
        """Test a multi-statement run does not commit the open transaction."""
        conn = pool.acquire_connection()
        conn.begin_transaction()
        conn.execute_script("DELETE FROM orders WHERE id = 1; DELETE FROM orders WHERE id = 2")
        assert conn.in_transaction
        conn.rollback()
        conn.release()
        assert row_count(pool, "orders") == 5

    def test_script_error_names_statement(self, pool):
        conn = pool.acquire_connection()
        try:
            with pytest.raises(DatabaseError) as exc_info:
                conn.execute_script("SELECT 1; SELEC 2")
        finally:
            conn.release()
        assert exc_info.value.info.statement == "SELEC 2"


class TestResultValues:
    """Test values and metadata come back exactly as sqlite produced them."""

    def test_nullable_integer_stays_int(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute(
                "SELECT o.id, u.id AS uid FROM orders o "
                "LEFT JOIN users u ON u.id = o.user_id AND u.name = 'Alice' ORDER BY o.id"
            )
        finally:
            conn.release()
        uids = list(result.frame["uid"])
        assert uids == [1, 1, None, None, None]
        assert type(uids[0]) is int

    def test_large_integer_exact(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute(
                "SELECT CASE WHEN note IS NULL THEN 9007199254740993 END AS big FROM users ORDER BY id"
            )
        finally:
            conn.release()
        assert list(result.frame["big"]) == [9007199254740993, None, 9007199254740993]

    def test_update_after_insert_has_no_insert_id(self, pool):
        conn = pool.acquire_connection()
        try:
            inserted = conn.execute("INSERT INTO orders (user_id, amount) VALUES (2, 9.5)")
            updated = conn.execute("UPDATE orders SET amount = 3 WHERE id = 1")
            deleted = conn.execute("DELETE FROM orders WHERE id = 2")
        finally:
            conn.release()
        assert inserted.last_insert_id == 6
        assert updated.last_insert_id is None
        assert deleted.last_insert_id is None

    def test_ignored_insert_has_no_insert_id(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute(
                "INSERT OR IGNORE INTO users (email, name) VALUES ('alice@example.com', 'Dup')"
            )
        finally:
            conn.release()
        assert result.affected_rows == 0
        assert result.last_insert_id is None

    def test_script_keeps_last_rows(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute_script("SELECT id FROM users; SELECT id, status FROM orders ORDER BY id")
        finally:
            conn.release()
        assert result.returns_rows
        assert result.columns == ("id", "status")
        assert result.row_count == 5

    def test_script_write_then_select(self, pool):
        conn = pool.acquire_connection()
        try:
            result = conn.execute_script("DELETE FROM orders WHERE id = 1; SELECT COUNT(*) AS n FROM orders")
        finally:
            conn.release()
        assert list(result.frame["n"]) == [4]
        assert result.affected_rows == 1
