# Precog Client
# File: transports/stdio_server.py
# Version: v2

"""STDIO entrypoint for the Precog MCP server.

This is the script behind the ``precog-mcp`` console command.

It creates a FastMCP server, registers the Precog tools and runs the
built-in stdio transport.
"""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from ..tools import tasks


def main() -> None:
    """Synchronous entrypoint for console_scripts."""
    mcp = FastMCP("precog")

    # Register core tools (ping, query, append, delete, …)
    tasks.register_tools(mcp)

    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
