"""Tests for the MCP server: authorization middleware and end-to-end tool calls."""

from __future__ import annotations

import json
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastmcp import Client
from fastmcp.client.client import ToolError
from mcp import McpError

from auth0_mcp.config import AppConfig, AuthorizationConfig
from auth0_mcp.exceptions import UnauthorizedToolCallError
from auth0_mcp.security.authorization import Authorization
from auth0_mcp.security.credential_store import Credentials
from auth0_mcp.server import AuthorizationMiddleware, build_server, create_server_from_config
from auth0_mcp.tools.base import current_api
from auth0_mcp.tools.catalog import ALL_TOOLS, filter_tools

CREDENTIALS = Credentials(access_token="mgmt-token", domain="dev-tenant.us.auth0.com")


def _mock_context(tool_name: str) -> MagicMock:
    context = MagicMock()
    context.message.name = tool_name
    return context


def _mock_transport_factory(requests: list[httpx.Request], body: object = None):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=body if body is not None else {"ok": True})

    return lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))


# =============================================================================
# AuthorizationMiddleware
# =============================================================================


class TestAuthorizationMiddleware:
    @pytest.fixture
    def gate(self) -> MagicMock:
        gate = MagicMock(spec=Authorization)
        gate.is_authorized.return_value = True
        return gate

    @pytest.mark.asyncio
    async def test_denied_call_never_reaches_tool(self, gate: MagicMock) -> None:
        """Given the gate denies, the handler is not called and -32001 is raised."""
        # Arrange
        gate.is_authorized.return_value = False
        call_next = AsyncMock()
        middleware = AuthorizationMiddleware(
            tools=ALL_TOOLS, authorization=gate, credentials_provider=lambda: CREDENTIALS
        )

        # Act
        with patch("auth0_mcp.server.get_http_headers", return_value={"authorization": "Bearer x"}):
            with pytest.raises(UnauthorizedToolCallError) as exc_info:
                await middleware.on_call_tool(_mock_context("auth0_create_application"), call_next)

        # Assert
        call_next.assert_not_called()
        assert exc_info.value.error.code == -32001
        assert exc_info.value.tool_name == "auth0_create_application"
        gate.is_authorized.assert_called_once_with(["create:clients"], "Bearer x")

    @pytest.mark.asyncio
    async def test_missing_credentials_denied(self, gate: MagicMock) -> None:
        call_next = AsyncMock()
        middleware = AuthorizationMiddleware(tools=ALL_TOOLS, authorization=gate, credentials_provider=lambda: None)

        with patch("auth0_mcp.server.get_http_headers", return_value={}):
            with pytest.raises(UnauthorizedToolCallError, match="auth0-mcp init"):
                await middleware.on_call_tool(_mock_context("auth0_list_logs"), call_next)

        call_next.assert_not_called()

    @pytest.mark.asyncio
    async def test_allowed_call_runs_with_bound_client(self, gate: MagicMock) -> None:
        # Arrange
        seen: list[str] = []

        async def call_next(context: object) -> str:
            seen.append(current_api().domain)
            return "result"

        middleware = AuthorizationMiddleware(
            tools=ALL_TOOLS,
            authorization=gate,
            credentials_provider=lambda: CREDENTIALS,
            http_client_factory=_mock_transport_factory([]),
        )

        # Act
        with patch("auth0_mcp.server.get_http_headers", return_value={}):
            result = await middleware.on_call_tool(_mock_context("auth0_list_logs"), call_next)

        # Assert
        assert result == "result"
        assert seen == ["dev-tenant.us.auth0.com"]
        gate.is_authorized.assert_called_once_with(["read:logs"], None)

    @pytest.mark.asyncio
    async def test_gate_and_credentials_run_off_event_loop(self, gate: MagicMock) -> None:
        """Given blocking keychain and refresh work, neither runs on the loop thread."""
        # Arrange
        loop_thread = threading.get_ident()
        threads: list[int] = []
        gate.is_authorized.side_effect = lambda *args: threads.append(threading.get_ident()) or True

        def credentials_provider() -> Credentials:
            threads.append(threading.get_ident())
            return CREDENTIALS

        middleware = AuthorizationMiddleware(
            tools=ALL_TOOLS,
            authorization=gate,
            credentials_provider=credentials_provider,
            http_client_factory=_mock_transport_factory([]),
        )

        # Act
        with patch("auth0_mcp.server.get_http_headers", return_value={}):
            await middleware.on_call_tool(_mock_context("auth0_list_logs"), AsyncMock(return_value="ok"))

        # Assert
        assert len(threads) == 2
        assert loop_thread not in threads

    @pytest.mark.asyncio
    async def test_unknown_tool_requires_no_scopes(self, gate: MagicMock) -> None:
        middleware = AuthorizationMiddleware(tools=[], authorization=gate, credentials_provider=lambda: CREDENTIALS)

        with patch("auth0_mcp.server.get_http_headers", return_value={}):
            await middleware.on_call_tool(_mock_context("auth0_unknown"), AsyncMock())

        gate.is_authorized.assert_called_once_with([], None)


# =============================================================================
# End-to-end through FastMCP Client (in-memory transport)
# =============================================================================


class TestServerEndToEnd:
    @pytest.mark.asyncio
    async def test_list_tools_needs_no_credentials(self) -> None:
        server = build_server(
            tools=filter_tools(ALL_TOOLS, ["auth0_list_*"]),
            authorization=Authorization(AuthorizationConfig()),
            credentials_provider=lambda: None,
        )

        async with Client(server) as client:
            tools = await client.list_tools()

        assert {tool.name for tool in tools} == {
            "auth0_list_applications",
            "auth0_list_resource_servers",
            "auth0_list_actions",
            "auth0_list_logs",
            "auth0_list_forms",
        }
        assert all(tool.annotations.readOnlyHint for tool in tools)

    @pytest.mark.asyncio
    async def test_tool_call_reaches_management_api(self) -> None:
        # Arrange
        requests: list[httpx.Request] = []
        server = build_server(
            tools=ALL_TOOLS,
            authorization=Authorization(AuthorizationConfig()),
            credentials_provider=lambda: CREDENTIALS,
            http_client_factory=_mock_transport_factory(requests, {"client_id": "abc", "client_secret": "s"}),
        )

        # Act
        async with Client(server) as client:
            result = await client.call_tool("auth0_get_application", {"client_id": "abc"})

        # Assert
        assert json.loads(result.content[0].text) == {"client_id": "abc", "client_secret": "[REDACTED]"}
        assert requests[0].url == "https://dev-tenant.us.auth0.com/api/v2/clients/abc"
        assert requests[0].headers["authorization"] == "Bearer mgmt-token"

    @pytest.mark.asyncio
    async def test_denied_call_makes_no_api_request(self) -> None:
        # Arrange
        requests: list[httpx.Request] = []
        server = build_server(
            tools=ALL_TOOLS,
            authorization=Authorization(AuthorizationConfig(type="bearer", token="expected")),
            credentials_provider=lambda: CREDENTIALS,
            http_client_factory=_mock_transport_factory(requests),
        )

        # Act & Assert
        async with Client(server) as client:
            with pytest.raises((ToolError, McpError)):
                await client.call_tool("auth0_list_logs", {})

        assert requests == []


class TestCreateServerFromConfig:
    def test_read_only_registers_only_read_tools(self, store) -> None:
        with patch("auth0_mcp.server.build_server") as mock_build:
            create_server_from_config(AppConfig(), tool_patterns=["*"], read_only=True, store=store)

        tools = mock_build.call_args.kwargs["tools"]
        assert tools
        assert all(tool.read_only for tool in tools)
