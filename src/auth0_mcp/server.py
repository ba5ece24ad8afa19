"""MCP server exposing the Auth0 Management API tool catalog.

Every tool call passes through AuthorizationMiddleware, which is the only
place the server touches credential state:

    1. Authorization.is_authorized(tool scopes, Authorization header)
    2. TokenManager.get_valid_credentials() (refresh policy applies)
    3. Bind a ManagementApiClient for the call and run the tool

A denial at step 1 or 2 reaches the client as a JSON-RPC error with code
-32001; the tool handler never runs.
"""

from __future__ import annotations

__all__ = [
    "AuthorizationMiddleware",
    "build_server",
    "create_server_from_config",
]

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

import httpx
from fastmcp import FastMCP
from fastmcp.server.dependencies import get_http_headers
from fastmcp.server.middleware import Middleware
from fastmcp.server.middleware.middleware import CallNext, MiddlewareContext
from mcp.types import ToolAnnotations

from auth0_mcp import __version__
from auth0_mcp.config import AppConfig
from auth0_mcp.constants import APP_NAME, MCP_SERVER_NAME
from auth0_mcp.exceptions import UnauthorizedToolCallError
from auth0_mcp.security.auth.token_refresh import TokenManager
from auth0_mcp.security.authorization import Authorization
from auth0_mcp.security.credential_store import CredentialStore, Credentials
from auth0_mcp.telemetry.system.system_logger import get_system_logger
from auth0_mcp.tools.base import ManagementApiClient, ToolDefinition, bind_api
from auth0_mcp.tools.catalog import ALL_TOOLS, filter_tools
from auth0_mcp.utils.logging.logging_helpers import mask_tenant_name


class AuthorizationMiddleware(Middleware):
    """Gate tool calls on authorization and valid credentials.

    Non-tool requests (initialize, tools/list, ping) pass through untouched;
    listing tools needs no credentials.
    """

    def __init__(
        self,
        *,
        tools: Sequence[ToolDefinition],
        authorization: Authorization,
        credentials_provider: Callable[[], Credentials | None],
        http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            tools: Registered tools, used to look up required scopes.
            authorization: Gate consulted before every tool call.
            credentials_provider: Returns valid credentials or None. Usually
                TokenManager.get_valid_credentials.
            http_client_factory: Creates the AsyncClient for Management API
                calls. Tests inject a client backed by httpx.MockTransport.
            logger: Logger for decisions (defaults to the system logger).
        """
        self._tools = {tool.name: tool for tool in tools}
        self._authorization = authorization
        self._credentials_provider = credentials_provider
        self._http_client_factory = http_client_factory
        self._logger = logger or get_system_logger()

    async def on_call_tool(self, context: MiddlewareContext[Any], call_next: CallNext[Any]) -> Any:
        """Authorize the call, resolve credentials and run the tool.

        Raises:
            UnauthorizedToolCallError: Gate denied the call or no valid
                credentials are available.
        """
        # context.message is the CallToolRequestParams
        tool_name = context.message.name
        tool = self._tools.get(tool_name)
        required_scopes = list(tool.required_scopes) if tool else []

        headers = get_http_headers(include_all=True)
        auth_header = headers.get("authorization")

        # Both checks may read the keychain or refresh over sync HTTP
        authorized = await asyncio.to_thread(self._authorization.is_authorized, required_scopes, auth_header)
        if not authorized:
            raise UnauthorizedToolCallError(
                f"Unauthorized: missing or insufficient credentials for tool '{tool_name}'",
                tool_name=tool_name,
                required_scopes=required_scopes,
            )

        credentials = await asyncio.to_thread(self._credentials_provider)
        if credentials is None:
            self._logger.warning(
                {
                    "event": "tool_call_without_credentials",
                    "tool_name": tool_name,
                    "message": f"No valid Auth0 credentials. Run '{APP_NAME} init' to authenticate.",
                }
            )
            raise UnauthorizedToolCallError(
                f"No valid Auth0 credentials. Run '{APP_NAME} init' to authenticate.",
                tool_name=tool_name,
                required_scopes=required_scopes,
            )

        http_client = self._http_client_factory() if self._http_client_factory else None
        self._logger.debug(
            {
                "event": "tool_call",
                "tool_name": tool_name,
                "tenant": mask_tenant_name(credentials.domain),
            }
        )

        async with ManagementApiClient(credentials, http_client=http_client) as api:
            with bind_api(api):
                return await call_next(context)


def build_server(
    *,
    tools: Sequence[ToolDefinition],
    authorization: Authorization,
    credentials_provider: Callable[[], Credentials | None],
    http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> FastMCP:
    """Create a FastMCP server with the given tools behind the gate.

    Args:
        tools: Tools to register (already filtered).
        authorization: Gate consulted before every tool call.
        credentials_provider: Returns valid credentials or None.
        http_client_factory: Optional AsyncClient factory for API calls.

    Returns:
        Configured FastMCP server (not yet running).
    """
    server: FastMCP = FastMCP(name=MCP_SERVER_NAME, version=__version__)

    for tool in tools:
        server.tool(
            tool.handler,
            name=tool.name,
            description=tool.description,
            annotations=ToolAnnotations(readOnlyHint=tool.read_only),
        )

    server.add_middleware(
        AuthorizationMiddleware(
            tools=tools,
            authorization=authorization,
            credentials_provider=credentials_provider,
            http_client_factory=http_client_factory,
        )
    )

    get_system_logger().info(
        {
            "event": "server_built",
            "tool_count": len(tools),
            "message": f"MCP server ready with {len(tools)} tools",
        }
    )
    return server


def create_server_from_config(
    config: AppConfig,
    *,
    tool_patterns: Sequence[str] | None = None,
    read_only: bool = False,
    store: CredentialStore | None = None,
) -> FastMCP:
    """Wire store, token manager, gate and tool selection from config.

    Args:
        config: Application configuration.
        tool_patterns: Glob patterns over tool names (None = all tools).
        read_only: Register only read-only tools.
        store: Credential store (defaults to the OS keychain backend).

    Returns:
        Configured FastMCP server.
    """
    store = store or CredentialStore()
    manager = TokenManager(store, config.oauth, config.token)

    authorization = Authorization(
        config.authorization,
        token_provider=manager.get_valid_access_token,
    )
    tools = filter_tools(ALL_TOOLS, tool_patterns, read_only=read_only)

    return build_server(
        tools=tools,
        authorization=authorization,
        credentials_provider=manager.get_valid_credentials,
    )
