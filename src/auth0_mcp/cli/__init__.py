"""Command-line interface for auth0-mcp.

Provides commands for authenticating, configuring MCP clients, and running
the MCP server.
"""

from .main import cli, main

__all__ = ["cli", "main"]
