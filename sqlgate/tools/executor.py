"""
Tool executor for sqlgate.

This is the tool BOUNDARY: the MCP server (and any future API) calls these
methods and never touches the pool or the validator directly.

- Every statement goes through the QueryValidator first.
- While a transaction is active, statements run on the transaction's
  connection; otherwise a pooled connection is used for that one call.
- Results and failures come back as plain dict envelopes.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

import pandas as pd

from ..errors import (
    DatabaseConnectionError,
    DatabaseError,
    ErrorCode,
    TableNotFoundError,
    build_connection_error_response,
    build_database_error_response,
    build_error_response,
    build_security_error_response,
    build_transaction_error_response,
)
from ..log import preview
from ..sql import schema
from ..sql.executor import PooledConnection, QueryResult, SqlitePool
from ..sql.policy import QueryValidator, SecurityPolicy
from ..sql.safety import has_multiple_statements
from ..sql.transaction import TransactionError, TransactionManager

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def frame_to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame -> list of JSON-safe dicts (NaN becomes None)."""
    cleaned = frame.astype(object).where(frame.notna(), None)
    return [
        {key: _json_safe(value) for key, value in record.items()}
        for record in cleaned.to_dict(orient="records")
    ]


def format_result(result: QueryResult) -> Dict[str, Any]:
    if result.returns_rows:
        formatted = {
            "rows": frame_to_records(result.frame),
            "columns": list(result.columns),
            "row_count": result.row_count,
        }
        # multi-statement runs that also wrote something
        if result.affected_rows:
            formatted["affected_rows"] = result.affected_rows
        return formatted
    return {
        "affected_rows": result.affected_rows,
        "last_insert_id": result.last_insert_id,
    }


def _ok(result: Dict[str, Any]) -> Dict[str, Any]:
    return {"success": True, "result": result}


def _missing_param(name: str) -> Dict[str, Any]:
    return build_error_response(ErrorCode.INVALID_PARAMS, f"Missing required parameter: {name}")


class DirectToolExecutor:
    """
    Executes tools directly against the pool.

    One executor owns one TransactionManager, so it represents one client
    session. Callers must not drive the same executor from several threads.
    """

    def __init__(
        self,
        pool: SqlitePool,
        policy: SecurityPolicy,
        transactions: Optional[TransactionManager] = None,
    ):
        self.pool = pool
        self.validator = QueryValidator(policy)
        self.transactions = transactions or TransactionManager()

    @property
    def policy(self) -> SecurityPolicy:
        return self.validator.policy

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------
    def run_query(self, sql: str) -> Dict[str, Any]:
        if not isinstance(sql, str):
            return _missing_param("sql")

        outcome = self.validator.validate(sql)
        if not outcome.accepted:
            logger.warning("Query validation failed: %s [%s]", outcome.rejection_reason, preview(sql))
            details = {"statement_kind": outcome.statement_kind.value} if outcome.statement_kind else None
            return build_security_error_response(
                f"Query validation failed: {outcome.rejection_reason}", details
            )

        statement = outcome.executable_text
        logger.debug("Executing query [%s]", preview(statement))
        try:
            with self._connection() as conn:
                result = self._execute(conn, statement)
        except DatabaseError as e:
            logger.error("Query execution failed: %s [%s]", e, preview(statement))
            return build_database_error_response(e)
        except DatabaseConnectionError as e:
            logger.error("No database connection: %s", e)
            return build_connection_error_response(e)

        logger.info(
            "Query executed: kind=%s rows=%s in_transaction=%s",
            outcome.statement_kind,
            result.row_count if result.returns_rows else result.affected_rows,
            self.transactions.is_in_transaction(),
        )
        return _ok({
            "statement_kind": outcome.statement_kind.value,
            "sql": statement,
            **format_result(result),
        })

    def _execute(self, conn: PooledConnection, statement: str) -> QueryResult:
        if self.policy.allow_multiple_statements and has_multiple_statements(statement):
            return conn.execute_script(statement)
        return conn.execute(statement)

    @contextmanager
    def _connection(self) -> Iterator[PooledConnection]:
        """Yield the transaction's connection if one is active, else a pooled one."""
        bound = self.transactions.get_connection()
        if bound is not None:
            yield bound
            return
        conn = self.pool.acquire_connection()
        try:
            yield conn
        finally:
            conn.release()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    def list_tables(self) -> Dict[str, Any]:
        try:
            with self._connection() as conn:
                tables = schema.list_tables(conn)
        except DatabaseError as e:
            return build_database_error_response(e)
        except DatabaseConnectionError as e:
            return build_connection_error_response(e)
        logger.info("Tables listed: %d", len(tables))
        return _ok({"tables": tables})

    def describe_table(self, table: str) -> Dict[str, Any]:
        if not table or not isinstance(table, str):
            return _missing_param("table")
        return self._table_tool("columns", schema.describe_table, table)

    def show_indexes(self, table: str) -> Dict[str, Any]:
        if not table or not isinstance(table, str):
            return _missing_param("table")
        return self._table_tool("indexes", schema.show_indexes, table)

    def _table_tool(self, key: str, fn, table: str) -> Dict[str, Any]:
        try:
            with self._connection() as conn:
                items = fn(conn, table)
        except TableNotFoundError as e:
            logger.warning("Table does not exist: %s", table)
            return build_error_response(ErrorCode.DATABASE_ERROR, f"Error: {e}")
        except DatabaseError as e:
            return build_database_error_response(e)
        except DatabaseConnectionError as e:
            return build_connection_error_response(e)
        return _ok({"table": table, key: items})

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def begin_transaction(self) -> Dict[str, Any]:
        try:
            self.transactions.begin(self.pool)
        except TransactionError as e:
            logger.error("Failed to begin transaction: %s", e)
            return build_transaction_error_response(e)
        logger.info("Transaction started")
        return self._transaction_ok("Transaction started successfully")

    def commit_transaction(self) -> Dict[str, Any]:
        try:
            self.transactions.commit()
        except TransactionError as e:
            logger.error("Failed to commit transaction: %s", e)
            return build_transaction_error_response(e)
        logger.info("Transaction committed")
        return self._transaction_ok("Transaction committed successfully")

    def rollback_transaction(self) -> Dict[str, Any]:
        try:
            self.transactions.rollback()
        except TransactionError as e:
            logger.error("Failed to rollback transaction: %s", e)
            return build_transaction_error_response(e)
        logger.info("Transaction rolled back")
        return self._transaction_ok("Transaction rolled back successfully")

    def transaction_status(self) -> Dict[str, Any]:
        return _ok({
            "state": self.transactions.state.value,
            "in_transaction": self.transactions.is_in_transaction(),
        })

    def _transaction_ok(self, message: str) -> Dict[str, Any]:
        return _ok({"message": message, "state": self.transactions.state.value})
