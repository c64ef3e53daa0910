# sqlgate - SQL safety gate and transaction manager for MCP clients
"""
sqlgate - policy-checked SQL execution for tool-calling clients.
"""

__version__ = "0.1.0"

from .sql.policy import QueryValidator, SecurityPolicy, ValidationOutcome, validate
from .sql.classify import StatementKind
from .sql.transaction import TransactionError, TransactionManager, TransactionState
from .tools.executor import DirectToolExecutor

__all__ = [
    "__version__",
    "QueryValidator",
    "SecurityPolicy",
    "ValidationOutcome",
    "validate",
    "StatementKind",
    "TransactionError",
    "TransactionManager",
    "TransactionState",
    "DirectToolExecutor",
]
