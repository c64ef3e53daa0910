"""Read-only schema introspection for SQLite databases."""
from __future__ import annotations

from typing import Any, Dict, List

from ..errors import TableNotFoundError
from .executor import PooledConnection


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _records(connection: PooledConnection, sql: str) -> List[Dict[str, Any]]:
    result = connection.execute(sql)
    if result.frame is None:
        return []
    return result.frame.to_dict(orient="records")


def list_tables(connection: PooledConnection) -> List[str]:
    rows = _records(
        connection,
        "SELECT name FROM sqlite_master "
        "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name",
    )
    return [r["name"] for r in rows]


def describe_table(connection: PooledConnection, table: str) -> List[Dict[str, Any]]:
    rows = _records(connection, f"PRAGMA table_info({quote_identifier(table)})")
    if not rows:
        raise TableNotFoundError(table)
    return [
        {
            "name": r["name"],
            "type": r["type"],
            "nullable": not bool(r["notnull"]),
            "key": "PRI" if r["pk"] else "",
            "default": r["dflt_value"],
            "extra": "",
        }
        for r in rows
    ]


def show_indexes(connection: PooledConnection, table: str) -> List[Dict[str, Any]]:
    # table_info is empty for unknown tables; index_list would just be empty too
    if not _records(connection, f"PRAGMA table_info({quote_identifier(table)})"):
        raise TableNotFoundError(table)

    indexes: List[Dict[str, Any]] = []
    for idx in _records(connection, f"PRAGMA index_list({quote_identifier(table)})"):
        for col in _records(connection, f"PRAGMA index_info({quote_identifier(idx['name'])})"):
            indexes.append(
                {
                    "name": idx["name"],
                    "column": col["name"],
                    "unique": bool(idx["unique"]),
                    "sequence": int(col["seqno"]) + 1,
                    "origin": idx["origin"],
                }
            )
    return indexes
