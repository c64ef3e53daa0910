"""
Minimal MCP client session against the sqlgate server.

This proves:
- the server can be launched over stdio
- tools can be discovered
- a transaction can be driven end to end

Run with: python -m scripts.mcp_client_example
"""

import asyncio
import sys

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


async def main():
    params = StdioServerParameters(command=sys.executable, args=["-m", "sqlgate.server"])

    async with stdio_client(params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            print("TOOLS:", [t.name for t in tools.tools])

            result = await session.call_tool("query", {"sql": "SELECT COUNT(*) AS n FROM orders"})
            print("COUNT:", result.content)

            # Rejected by policy: no WHERE clause
            result = await session.call_tool("query", {"sql": "DELETE FROM orders"})
            print("REJECTED:", result.content)

            await session.call_tool("begin_transaction", {})
            await session.call_tool(
                "query", {"sql": "UPDATE orders SET status = 'paid' WHERE id = 1"}
            )
            result = await session.call_tool("rollback_transaction", {})
            print("ROLLBACK:", result.content)


if __name__ == "__main__":
    asyncio.run(main())
