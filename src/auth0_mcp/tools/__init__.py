"""Management API tools exposed by the MCP server."""

from auth0_mcp.tools.base import ManagementApiClient, ToolDefinition, bind_api, current_api
from auth0_mcp.tools.catalog import (
    ALL_TOOLS,
    filter_tools,
    get_all_scopes,
    get_tool,
    validate_tool_patterns,
)

__all__ = [
    "ALL_TOOLS",
    "ManagementApiClient",
    "ToolDefinition",
    "bind_api",
    "current_api",
    "filter_tools",
    "get_all_scopes",
    "get_tool",
    "validate_tool_patterns",
]
