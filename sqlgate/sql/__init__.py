"""SQL utilities for sqlgate."""
from .classify import StatementKind, classify_statement
from .executor import PooledConnection, QueryResult, SqlitePool
from .policy import QueryValidator, SecurityPolicy, ValidationOutcome, validate
from .safety import apply_row_limit, has_multiple_statements, has_where_clause, split_statements
from .transaction import TransactionError, TransactionManager, TransactionState

__all__ = [
    "StatementKind",
    "classify_statement",
    "PooledConnection",
    "QueryResult",
    "SqlitePool",
    "QueryValidator",
    "SecurityPolicy",
    "ValidationOutcome",
    "validate",
    "apply_row_limit",
    "has_multiple_statements",
    "has_where_clause",
    "split_statements",
    "TransactionError",
    "TransactionManager",
    "TransactionState",
]
