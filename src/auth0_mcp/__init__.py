"""auth0-mcp: credential broker and MCP server for the Auth0 Management API."""

__version__ = "0.3.0"
