"""
SQLite connection pool.

The pool hands out PooledConnection objects that expose exactly what the
rest of sqlgate needs: execute, begin/commit/rollback and release.
Connections run in autocommit mode (isolation_level=None), so a
transaction only exists after an explicit BEGIN.
"""
from __future__ import annotations

import logging
import re
import sqlite3
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from ..errors import DatabaseConnectionError, DatabaseError, classify_database_error
from .safety import split_statements

logger = logging.getLogger(__name__)

INSERT_RE = re.compile(r"\s*(INSERT|REPLACE)\b", re.IGNORECASE)


@dataclass(frozen=True)
class QueryResult:
    columns: Tuple[str, ...] = ()
    frame: Optional[pd.DataFrame] = field(default=None, compare=False)
    row_count: int = 0
    affected_rows: Optional[int] = None
    last_insert_id: Optional[int] = None

    @property
    def returns_rows(self) -> bool:
        return self.frame is not None


def _rows_result(cur: sqlite3.Cursor) -> QueryResult:
    columns = tuple(d[0] for d in cur.description)
    # dtype=object keeps sqlite's values as-is: no int -> float for NULL-bearing columns
    frame = pd.DataFrame(cur.fetchall(), columns=list(columns), dtype=object)
    return QueryResult(columns=columns, frame=frame, row_count=len(frame))


def _inserted_rowid(cur: sqlite3.Cursor, sql: str) -> Optional[int]:
    # cursor.lastrowid is the connection's last insert, even after an UPDATE
    if INSERT_RE.match(sql) and cur.rowcount > 0:
        return cur.lastrowid
    return None


class PooledConnection:
    """A connection checked out of a SqlitePool. release() is idempotent."""

    def __init__(self, pool: "SqlitePool", raw: sqlite3.Connection):
        self._pool = pool
        self._raw: Optional[sqlite3.Connection] = raw

    @property
    def released(self) -> bool:
        return self._raw is None

    @property
    def in_transaction(self) -> bool:
        return self._raw is not None and self._raw.in_transaction

    def _require_open(self) -> sqlite3.Connection:
        if self._raw is None:
            raise DatabaseConnectionError("Connection has already been released")
        return self._raw

    def execute(self, sql: str) -> QueryResult:
        raw = self._require_open()
        cur = raw.cursor()
        try:
            cur.execute(sql)
            if cur.description:
                return _rows_result(cur)
            return QueryResult(
                affected_rows=max(cur.rowcount, 0),
                last_insert_id=_inserted_rowid(cur, sql),
            )
        except sqlite3.Error as e:
            raise DatabaseError(classify_database_error(e, sql)) from e
        finally:
            cur.close()

    def execute_script(self, sql: str) -> QueryResult:
        """Run several ';'-separated statements one by one.

        affected_rows is summed over all statements. If any statement returns
        rows, the rows of the last such statement are kept.

        sqlite3's executescript() is not used: it commits any open transaction first.
        """
        raw = self._require_open()
        affected = 0
        rows: Optional[QueryResult] = None
        cur = raw.cursor()
        try:
            for statement in split_statements(sql):
                try:
                    cur.execute(statement)
                    if cur.description:
                        rows = _rows_result(cur)
                except sqlite3.Error as e:
                    raise DatabaseError(classify_database_error(e, statement)) from e
                affected += max(cur.rowcount, 0)
        finally:
            cur.close()
        if rows is not None:
            return replace(rows, affected_rows=affected)
        return QueryResult(affected_rows=affected)

    def begin_transaction(self) -> None:
        self._command("BEGIN")

    def commit(self) -> None:
        self._command("COMMIT")

    def rollback(self) -> None:
        self._command("ROLLBACK")

    def _command(self, statement: str) -> None:
        raw = self._require_open()
        try:
            raw.execute(statement)
        except sqlite3.Error as e:
            raise DatabaseError(classify_database_error(e, statement)) from e

    def release(self) -> None:
        if self._raw is None:
            return
        raw, self._raw = self._raw, None
        self._pool._give_back(raw)


class SqlitePool:
    """
    Bounded pool of sqlite3 connections to one database file.

    At most ``pool_size`` connections are checked out at once; further
    acquire_connection() calls wait up to ``acquire_timeout`` seconds.
    """

    def __init__(self, db_path: Path | str, *, pool_size: int = 5, acquire_timeout: float = 10.0):
        self.db_path = Path(db_path)
        self.pool_size = pool_size
        self.acquire_timeout = acquire_timeout
        self._slots = threading.BoundedSemaphore(pool_size)
        self._idle: List[sqlite3.Connection] = []
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def database_name(self) -> str:
        return self.db_path.stem

    def acquire_connection(self) -> PooledConnection:
        if self._closed:
            raise DatabaseConnectionError("Connection pool is closed")
        if not self._slots.acquire(timeout=self.acquire_timeout):
            raise DatabaseConnectionError(
                f"Timed out after {self.acquire_timeout}s waiting for a database connection "
                f"(pool size {self.pool_size})"
            )
        try:
            raw = self._take_idle() or self._connect()
        except BaseException:
            self._slots.release()
            raise
        return PooledConnection(self, raw)

    def _take_idle(self) -> Optional[sqlite3.Connection]:
        with self._lock:
            return self._idle.pop() if self._idle else None

    def _connect(self) -> sqlite3.Connection:
        # sqlite3.connect would silently create a missing file
        if not self.db_path.exists():
            raise DatabaseConnectionError(f"SQLite DB not found at: {self.db_path}")
        try:
            return sqlite3.connect(str(self.db_path), isolation_level=None, check_same_thread=False)
        except sqlite3.Error as e:
            raise DatabaseConnectionError(f"Failed to connect to database at '{self.db_path}': {e}") from e

    def _give_back(self, raw: sqlite3.Connection) -> None:
        try:
            if raw.in_transaction:
                logger.warning("Connection returned with an open transaction; rolling back")
                raw.execute("ROLLBACK")
            with self._lock:
                if not self._closed:
                    self._idle.append(raw)
                    return
            raw.close()
        except sqlite3.Error as e:
            logger.warning("Discarding pooled connection: %s", e)
            raw.close()
        finally:
            self._slots.release()

    def close(self) -> None:
        with self._lock:
            self._closed = True
            idle, self._idle = self._idle, []
        for raw in idle:
            raw.close()
        logger.debug("Connection pool closed (%d idle connections)", len(idle))
