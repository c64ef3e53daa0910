"""
MCP server for sqlgate.

Exposes the tool boundary (DirectToolExecutor) as MCP tools over stdio and
every table schema as an MCP resource.

Run with: sqlgate-server   (or: python -m sqlgate.server)
"""
from __future__ import annotations

import json
import logging
import sys
from typing import Any, Callable, Dict, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from . import __version__
from .config import ServerConfig, load_config
from .errors import (
    ConfigValidationError,
    DatabaseConnectionError,
    DatabaseError,
    ErrorCode,
    build_error_response,
)
from .log import configure_logging
from .resources import ResourceError, SchemaResources
from .sql.executor import SqlitePool
from .sql.transaction import TransactionError
from .tools.executor import DirectToolExecutor

logger = logging.getLogger(__name__)

SERVER_NAME = "sqlgate"

TOOL_DESCRIPTIONS: Dict[str, str] = {
    "query": "Execute a SQL statement (SELECT, INSERT, UPDATE, DELETE) after the safety policy accepts it",
    "list_tables": "List all tables in the current database",
    "describe_table": "Get column definitions, types, and constraints for a table",
    "show_indexes": "Show all indexes for a table",
    "begin_transaction": "Begin a new database transaction",
    "commit_transaction": "Commit the current transaction",
    "rollback_transaction": "Rollback the current transaction",
}


class SqlGateServer:
    """Owns the pool, the tool executor and the schema resources for one stdio client."""

    def __init__(self, config: ServerConfig):
        self.config = config
        self.pool = SqlitePool(
            config.database.path,
            pool_size=config.database.pool_size,
            acquire_timeout=config.database.acquire_timeout,
        )
        self.tools = DirectToolExecutor(self.pool, config.security)
        self.resources = SchemaResources(self.pool, self.pool.database_name)
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "query": lambda args: self.tools.run_query(args.get("sql")),
            "list_tables": lambda args: self.tools.list_tables(),
            "describe_table": lambda args: self.tools.describe_table(args.get("table")),
            "show_indexes": lambda args: self.tools.show_indexes(args.get("table")),
            "begin_transaction": lambda args: self.tools.begin_transaction(),
            "commit_transaction": lambda args: self.tools.commit_transaction(),
            "rollback_transaction": lambda args: self.tools.rollback_transaction(),
        }

    def list_tools(self) -> Dict[str, str]:
        return dict(TOOL_DESCRIPTIONS)

    def handle_tool_call(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        handler = self._handlers.get(tool_name)
        if handler is None:
            return build_error_response(ErrorCode.METHOD_NOT_FOUND, f"Unknown tool: {tool_name}")
        return handler(arguments or {})

    def start(self) -> None:
        logger.info("Starting sqlgate server (database %s)", self.config.database.path)
        try:
            conn = self.pool.acquire_connection()
            try:
                conn.execute("SELECT 1")
            finally:
                conn.release()
        except DatabaseError as e:
            raise DatabaseConnectionError(
                f"Failed to connect to database at '{self.config.database.path}': {e}"
            ) from e
        logger.info("Database connection established")

    def stop(self) -> None:
        """Roll back an unfinished transaction, then close the pool."""
        if self.tools.transactions.is_in_transaction():
            logger.warning("Rolling back unfinished transaction on shutdown")
            try:
                self.tools.transactions.rollback()
            except TransactionError as e:
                logger.error("Rollback on shutdown failed: %s", e)
        self.pool.close()
        logger.info("sqlgate server stopped")


def tool_result(envelope: Dict[str, Any]) -> Dict[str, Any]:
    """Pass successful envelopes through; raise failed ones so the MCP result carries isError."""
    if not envelope.get("success"):
        raise ToolError(json.dumps(envelope, default=str))
    return envelope


def create_mcp_server(server: SqlGateServer) -> FastMCP:
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(description=TOOL_DESCRIPTIONS["query"])
    def query(sql: str) -> dict:
        return tool_result(server.handle_tool_call("query", {"sql": sql}))

    @mcp.tool(description=TOOL_DESCRIPTIONS["list_tables"])
    def list_tables() -> dict:
        return tool_result(server.handle_tool_call("list_tables"))

    @mcp.tool(description=TOOL_DESCRIPTIONS["describe_table"])
    def describe_table(table: str) -> dict:
        return tool_result(server.handle_tool_call("describe_table", {"table": table}))

    @mcp.tool(description=TOOL_DESCRIPTIONS["show_indexes"])
    def show_indexes(table: str) -> dict:
        return tool_result(server.handle_tool_call("show_indexes", {"table": table}))

    @mcp.tool(description=TOOL_DESCRIPTIONS["begin_transaction"])
    def begin_transaction() -> dict:
        return tool_result(server.handle_tool_call("begin_transaction"))

    @mcp.tool(description=TOOL_DESCRIPTIONS["commit_transaction"])
    def commit_transaction() -> dict:
        return tool_result(server.handle_tool_call("commit_transaction"))

    @mcp.tool(description=TOOL_DESCRIPTIONS["rollback_transaction"])
    def rollback_transaction() -> dict:
        return tool_result(server.handle_tool_call("rollback_transaction"))

    @mcp.resource(
        "sqlite://{database}/{table}",
        name="table_schema",
        description="Columns and indexes of a table",
        mime_type="application/json",
    )
    def table_schema(database: str, table: str) -> str:
        return server.resources.read_resource(f"sqlite://{database}/{table}").text

    return mcp


def register_table_resources(mcp: FastMCP, server: SqlGateServer) -> int:
    """Add one concrete resource per existing table so resources/list shows them."""
    try:
        resources = server.resources.list_resources()
    except ResourceError as e:
        logger.error("Failed to list resources: %s", e)
        return 0

    def _reader(uri: str) -> Callable[[], str]:
        def _read() -> str:
            return server.resources.read_resource(uri).text
        return _read

    for res in resources:
        mcp.resource(
            res.uri, name=res.name, description=res.description, mime_type=res.mime_type
        )(_reader(res.uri))
    logger.debug("Registered %d table resources", len(resources))
    return len(resources)


def main() -> int:
    try:
        config = load_config()
    except ConfigValidationError as e:
        print(str(e), file=sys.stderr)
        print("\nPlease check your environment variables.", file=sys.stderr)
        return 1

    configure_logging(config.logging)
    server = SqlGateServer(config)
    try:
        server.start()
    except DatabaseConnectionError as e:
        print(f"Database connection failed:\n{e}", file=sys.stderr)
        server.pool.close()
        return 1

    mcp = create_mcp_server(server)
    register_table_resources(mcp, server)
    logger.info("sqlgate %s ready, tools: %s", __version__, json.dumps(list(TOOL_DESCRIPTIONS)))
    try:
        mcp.run(transport="stdio")
    finally:
        server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
