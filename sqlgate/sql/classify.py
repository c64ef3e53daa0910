from __future__ import annotations

from enum import Enum
from typing import Tuple


class StatementKind(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DDL = "DDL"
    UNKNOWN = "UNKNOWN"

    def __str__(self) -> str:
        return self.value


DDL_KEYWORDS: Tuple[str, ...] = ("CREATE", "DROP", "ALTER", "TRUNCATE", "RENAME")

# Order matters: DDL markers are checked before DML markers.
_PREFIX_MARKERS: Tuple[Tuple[str, StatementKind], ...] = (
    *((f"{kw} ", StatementKind.DDL) for kw in DDL_KEYWORDS),
    ("SELECT ", StatementKind.SELECT),
    ("INSERT ", StatementKind.INSERT),
    ("UPDATE ", StatementKind.UPDATE),
    ("DELETE ", StatementKind.DELETE),
)


def classify_statement(sql: str) -> StatementKind:
    """Return the statement kind from the leading keyword. Never raises."""
    normalized = (sql or "").strip().upper()
    for marker, kind in _PREFIX_MARKERS:
        if normalized.startswith(marker):
            return kind
    return StatementKind.UNKNOWN
