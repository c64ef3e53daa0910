"""
MCP server launcher for sqlgate.

Without arguments this prints the available tools and runs a couple of
tool calls directly (no MCP transport). With --serve it starts the real
stdio server.

Run with: python -m scripts.mcp_server [--serve]
"""

import json
import sys

from sqlgate.config import load_config
from sqlgate.log import configure_logging
from sqlgate.server import SqlGateServer, main


def demo():
    config = load_config()
    configure_logging(config.logging)
    server = SqlGateServer(config)
    server.start()

    print("=" * 60)
    print("sqlgate - Direct Usage Example")
    print("=" * 60)

    print("\nAvailable tools:")
    for name, description in server.list_tools().items():
        print(f"  - {name}: {description[:50]}...")

    for tool, args in [
        ("list_tables", {}),
        ("query", {"sql": "SELECT * FROM orders"}),
        ("query", {"sql": "DELETE FROM orders"}),
    ]:
        print("\n" + "=" * 60)
        print(f"Example: {tool} {args}")
        print("=" * 60)
        print(json.dumps(server.handle_tool_call(tool, args), indent=2, default=str)[:1500])

    server.stop()
    print("\nTo run as MCP server: python -m scripts.mcp_server --serve")


if __name__ == "__main__":
    if "--serve" in sys.argv:
        sys.exit(main())
    demo()
