"""MCP client configuration writers (Claude Desktop, Cursor, Windsurf, VS Code)."""

from auth0_mcp.clients.base import ClientManager, ClientOptions
from auth0_mcp.clients.managers import (
    CLIENT_MANAGERS,
    ClaudeClientManager,
    CursorClientManager,
    VSCodeClientManager,
    WindsurfClientManager,
    get_client_manager,
)

__all__ = [
    "CLIENT_MANAGERS",
    "ClaudeClientManager",
    "ClientManager",
    "ClientOptions",
    "CursorClientManager",
    "VSCodeClientManager",
    "WindsurfClientManager",
    "get_client_manager",
]
