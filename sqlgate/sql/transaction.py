"""
Transaction lifecycle for one client session.

A TransactionManager holds at most one connection, and only while its
state is ACTIVE. Every statement issued during the transaction runs on that
connection (get_connection() returns the same object until commit/rollback).
The connection is released exactly once on every exit from ACTIVE.

Not safe for concurrent begin/commit/rollback on the same instance; use one
manager per client session.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional, Protocol

from ..errors import SqlGateError

logger = logging.getLogger(__name__)


class TransactionError(SqlGateError):
    pass


class TransactionInvariantError(TransactionError):
    """ACTIVE state without a bound connection. Indicates a bug, not a caller mistake."""


class TransactionState(str, Enum):
    NONE = "NONE"
    ACTIVE = "ACTIVE"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"

    def __str__(self) -> str:
        return self.value


class Connection(Protocol):
    def execute(self, sql: str) -> Any: ...
    def begin_transaction(self) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
    def release(self) -> None: ...


class ConnectionPool(Protocol):
    def acquire_connection(self) -> Connection: ...


def _failure(operation: str, cause: BaseException) -> TransactionError:
    detail = str(cause)
    if detail:
        return TransactionError(f"Failed to {operation} transaction: {detail}")
    return TransactionError(f"Failed to {operation} transaction")


class TransactionManager:
    def __init__(self) -> None:
        self._state = TransactionState.NONE
        self._connection: Optional[Connection] = None

    @property
    def state(self) -> TransactionState:
        return self._state

    def begin(self, pool: ConnectionPool) -> None:
        if self._state is TransactionState.ACTIVE:
            raise TransactionError("Transaction already active. Nested transactions are not supported.")

        connection: Optional[Connection] = None
        try:
            connection = pool.acquire_connection()
            connection.begin_transaction()
        except Exception as e:
            if connection is not None:
                self._release_quietly(connection)
            self._connection = None
            self._state = TransactionState.NONE
            raise _failure("begin", e) from e

        self._connection = connection
        self._state = TransactionState.ACTIVE
        logger.debug("Transaction started")

    def commit(self) -> None:
        connection = self._require_active("commit")
        try:
            connection.commit()
            self._state = TransactionState.COMMITTED
        except Exception as e:
            self.rollback_after_failed_commit(connection)
            self._state = TransactionState.ROLLED_BACK
            raise _failure("commit", e) from e
        finally:
            if self._state is TransactionState.ACTIVE:
                # interrupted mid-commit; the outcome is unknown
                self._state = TransactionState.ROLLED_BACK
            self._unbind(connection)

    def rollback(self) -> None:
        connection = self._require_active("rollback")
        try:
            connection.rollback()
        except Exception as e:
            raise _failure("rollback", e) from e
        finally:
            # The transaction is unusable either way.
            self._state = TransactionState.ROLLED_BACK
            self._unbind(connection)

    def rollback_after_failed_commit(self, connection: Connection) -> bool:
        """Best-effort rollback once COMMIT has failed.

        The outcome is returned for logging and tests; a failure here is
        discarded so the original commit error is what the caller sees.
        """
        try:
            connection.rollback()
        except Exception as e:
            logger.warning("Rollback after failed commit also failed: %s", e)
            return False
        return True

    def get_connection(self) -> Optional[Connection]:
        if self._state is TransactionState.ACTIVE:
            return self._connection
        return None

    def is_in_transaction(self) -> bool:
        return self._state is TransactionState.ACTIVE

    def reset(self) -> None:
        """Forget the current transaction without releasing its connection.

        Only for recovering an abandoned session; it does not roll anything back.
        """
        self._state = TransactionState.NONE
        self._connection = None

    def _require_active(self, operation: str) -> Connection:
        if self._state is not TransactionState.ACTIVE:
            raise TransactionError(f"No active transaction to {operation}")
        if self._connection is None:
            raise TransactionInvariantError("No active connection for transaction")
        return self._connection

    def _unbind(self, connection: Connection) -> None:
        self._connection = None
        self._release_quietly(connection)

    @staticmethod
    def _release_quietly(connection: Connection) -> None:
        try:
            connection.release()
        except Exception as e:
            logger.warning("Failed to release transaction connection: %s", e)
