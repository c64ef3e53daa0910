from __future__ import annotations

import re
from typing import Iterator, List

WHERE_RE = re.compile(r"\bWHERE\b")
LIMIT_RE = re.compile(r"\bLIMIT\b")


def _top_level_semicolons(text: str) -> Iterator[int]:
    """Yield the index of every ';' outside quoted strings.

    Quotes and backslash escapes are honoured. Comments and dollar-quoted
    strings are not understood.
    """
    in_single = False
    in_double = False
    escaped = False

    for i, ch in enumerate(text):
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
            continue
        if ch == "'" and not in_double:
            in_single = not in_single
            continue
        if ch == '"' and not in_single:
            in_double = not in_double
            continue
        if ch == ";" and not in_single and not in_double:
            yield i


def has_multiple_statements(sql: str) -> bool:
    """True when a top-level ';' is followed by more content."""
    text = sql or ""
    return any(text[i + 1:].strip() for i in _top_level_semicolons(text))


def split_statements(sql: str) -> List[str]:
    """Split on top-level ';', dropping blank pieces."""
    text = sql or ""
    pieces = []
    start = 0
    for i in _top_level_semicolons(text):
        pieces.append(text[start:i])
        start = i + 1
    pieces.append(text[start:])
    return [p.strip() for p in pieces if p.strip()]


def has_where_clause(sql: str) -> bool:
    # NOTE: also matches WHERE inside string literals, e.g. SET note='WHERE is it'.
    return WHERE_RE.search((sql or "").upper()) is not None


def has_limit_clause(sql: str) -> bool:
    return LIMIT_RE.search((sql or "").upper()) is not None


def apply_row_limit(sql: str, max_rows: int) -> str:
    """Append LIMIT <max_rows> to a SELECT that has none. Existing limits are kept."""
    if has_limit_clause(sql):
        return sql
    query = sql.strip()
    if query.endswith(";"):
        query = query[:-1].rstrip()
    return f"{query} LIMIT {max_rows}"
