"""
Error taxonomy and response envelopes for sqlgate.

Driver errors are classified once, at the pool boundary, into a small
DatabaseErrorInfo record. Everything above the pool works with that record
instead of probing sqlite3 exceptions for attributes.
"""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional


class ErrorCode(IntEnum):
    # JSON-RPC 2.0 standard errors
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Application errors
    DATABASE_ERROR = -32000
    VALIDATION_ERROR = -32001
    CONNECTION_ERROR = -32002
    TRANSACTION_ERROR = -32003
    SECURITY_ERROR = -32004


class SqlGateError(Exception):
    """Base class for every error raised by sqlgate."""


@dataclass(frozen=True)
class DatabaseErrorInfo:
    message: str
    code: Optional[str] = None
    state: Optional[int] = None
    statement: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"message": self.message}
        if self.code:
            data["code"] = self.code
        if self.state is not None:
            data["state"] = self.state
        if self.statement:
            data["statement"] = self.statement
        return data


class DatabaseError(SqlGateError):
    """A statement failed inside the database."""

    def __init__(self, info: DatabaseErrorInfo):
        super().__init__(info.message)
        self.info = info


class DatabaseConnectionError(SqlGateError):
    """The database could not be reached or the pool could not hand out a connection."""


class TableNotFoundError(SqlGateError):
    def __init__(self, table: str):
        super().__init__(f"Table '{table}' does not exist")
        self.table = table


class ConfigValidationError(SqlGateError):
    def __init__(self, message: str, problems: Dict[str, str]):
        super().__init__(message)
        self.problems = problems


def classify_database_error(exc: BaseException, sql: Optional[str] = None) -> DatabaseErrorInfo:
    """Extract the fields callers need from a driver exception."""
    if isinstance(exc, DatabaseError):
        return exc.info

    message = str(exc) or "Database error occurred"
    code = None
    state = None
    if isinstance(exc, sqlite3.Error):
        # Present on Python 3.11+
        code = getattr(exc, "sqlite_errorname", None)
        state = getattr(exc, "sqlite_errorcode", None)
        if code is None:
            code = type(exc).__name__
    return DatabaseErrorInfo(message=message, code=code, state=state, statement=sql)


# ---------------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------------

def build_error_response(
    code: ErrorCode,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    response: Dict[str, Any] = {
        "success": False,
        "error": message,
        "code": int(code),
    }
    if data:
        response["data"] = data
    return response


def build_database_error_response(exc: BaseException, sql: Optional[str] = None) -> Dict[str, Any]:
    info = classify_database_error(exc, sql)
    data = info.to_dict()
    data.pop("message")
    return build_error_response(ErrorCode.DATABASE_ERROR, f"Database error: {info.message}", data)


def build_validation_error_response(message: str, details: Any = None) -> Dict[str, Any]:
    return build_error_response(
        ErrorCode.VALIDATION_ERROR,
        message,
        {"details": details} if details is not None else None,
    )


def build_security_error_response(message: str, details: Any = None) -> Dict[str, Any]:
    return build_error_response(
        ErrorCode.SECURITY_ERROR,
        message,
        {"details": details} if details is not None else None,
    )


def build_connection_error_response(exc: BaseException) -> Dict[str, Any]:
    return build_error_response(
        ErrorCode.CONNECTION_ERROR,
        str(exc) or "Connection error occurred",
    )


def build_transaction_error_response(exc: BaseException) -> Dict[str, Any]:
    return build_error_response(
        ErrorCode.TRANSACTION_ERROR,
        f"Transaction error: {exc}" if str(exc) else "Unknown transaction error",
    )
