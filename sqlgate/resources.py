"""
Schema resources.

Every table is exposed as a read-only resource ``sqlite://<database>/<table>``
whose content is the table's columns and indexes as JSON.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .errors import SqlGateError, TableNotFoundError
from .sql.executor import SqlitePool
from .sql.schema import describe_table, list_tables, show_indexes

URI_SCHEME = "sqlite://"
MIME_TYPE = "application/json"


class ResourceError(SqlGateError):
    pass


@dataclass(frozen=True)
class Resource:
    uri: str
    name: str
    description: str
    mime_type: str = MIME_TYPE


@dataclass(frozen=True)
class ResourceContent:
    uri: str
    text: str
    mime_type: str = MIME_TYPE


def resource_uri(database: str, table: str) -> str:
    return f"{URI_SCHEME}{database}/{table}"


def parse_resource_uri(uri: str) -> Tuple[str, str]:
    if not uri.startswith(URI_SCHEME):
        raise ResourceError(f"Invalid resource URI: must start with '{URI_SCHEME}'")
    parts = uri[len(URI_SCHEME):].split("/")
    if len(parts) != 2:
        raise ResourceError(
            f"Invalid resource URI format: expected '{URI_SCHEME}database/table', got '{uri}'"
        )
    database, table = parts
    if not database or not table:
        raise ResourceError("Invalid resource URI: database and table names cannot be empty")
    return database, table


class SchemaResources:
    def __init__(self, pool: SqlitePool, database_name: str):
        self.pool = pool
        self.database_name = database_name

    def list_resources(self) -> List[Resource]:
        try:
            tables = self._with_connection(list_tables)
        except SqlGateError as e:
            raise ResourceError(f"Failed to list resources: {e}") from e
        return [
            Resource(
                uri=resource_uri(self.database_name, table),
                name=f"{table} schema",
                description=f"Schema information for table {table}",
            )
            for table in tables
        ]

    def read_resource(self, uri: str) -> ResourceContent:
        database, table = parse_resource_uri(uri)
        if database != self.database_name:
            raise ResourceError(
                f"Database mismatch: URI specifies '{database}' but connected to '{self.database_name}'"
            )
        try:
            schema = self.table_schema(table)
        except TableNotFoundError as e:
            raise ResourceError(str(e)) from e
        except SqlGateError as e:
            raise ResourceError(f"Failed to read resource: {e}") from e
        return ResourceContent(uri=uri, text=json.dumps(schema, indent=2, default=str))

    def table_schema(self, table: str) -> Dict[str, Any]:
        def _load(conn):
            return describe_table(conn, table), show_indexes(conn, table)

        columns, indexes = self._with_connection(_load)
        return {
            "table": table,
            "database": self.database_name,
            "columns": columns,
            "indexes": indexes,
        }

    def _with_connection(self, fn):
        conn = self.pool.acquire_connection()
        try:
            return fn(conn)
        finally:
            conn.release()
