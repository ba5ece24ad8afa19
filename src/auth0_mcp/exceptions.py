"""Custom exceptions for auth0-mcp.

This module contains all custom exceptions used throughout the package.
Exceptions are organized into two categories:

Recoverable Errors (server continues):
    - UnauthorizedToolCallError: Authorization gate denied a tool call,
      client gets MCP error -32001

CLI-Terminating Failures (command exits non-zero):
    - Auth0McpError: Base for failures with an exit code
    - AuthenticationError: No usable credentials for the requested operation
    - DeviceFlowError (and subclasses): Interactive device authorization failed
    - ClientCredentialsError: Headless client-credentials grant failed
    - ConfigurationError: Config file missing, invalid or inconsistent
    - UnsupportedPlatformError: No known config path for this OS
    - ScopeResolutionError: A requested scope pattern matched nothing

Library-style operations (refresh, expiry check, revoke, credential store)
never raise these; they return None/False so callers can fail secure.

Usage:
    from auth0_mcp.exceptions import DeviceFlowError, UnauthorizedToolCallError
"""

from __future__ import annotations

__all__ = [
    "Auth0McpError",
    "AuthenticationError",
    "ClientCredentialsError",
    "ConfigurationError",
    "DeviceFlowCancelledError",
    "DeviceFlowDeniedError",
    "DeviceFlowError",
    "DeviceFlowExpiredError",
    "ScopeResolutionError",
    "UNAUTHORIZED_CODE",
    "UnauthorizedToolCallError",
    "UnsupportedPlatformError",
]

from typing import Any

from mcp import McpError
from mcp.types import ErrorData

from auth0_mcp.constants import UNAUTHORIZED_CODE

# =============================================================================
# Recoverable Errors (server continues, client receives error response)
# =============================================================================


class UnauthorizedToolCallError(McpError):
    """Raised when the authorization gate denies a tool call.

    Inherits from McpError and constructs ErrorData with code -32001, which
    FastMCP serializes as a proper MCP error response.

    Attributes:
        message: Human-readable denial reason.
        tool_name: Name of the tool that was denied.
        required_scopes: Scopes the tool declares.
    """

    code: int = UNAUTHORIZED_CODE

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        required_scopes: list[str] | None = None,
    ) -> None:
        self.tool_name = tool_name
        self.required_scopes = required_scopes or []

        error_data = ErrorData(
            code=UNAUTHORIZED_CODE,
            message=message,
            data=self._build_error_data(),
        )

        super().__init__(error_data)
        self.message = message

    def _build_error_data(self) -> dict[str, Any] | None:
        data: dict[str, Any] = {}
        if self.tool_name is not None:
            data["tool_name"] = self.tool_name
        if self.required_scopes:
            data["required_scopes"] = self.required_scopes
        return data if data else None

    def __str__(self) -> str:
        return self.message


# =============================================================================
# CLI-Terminating Failures
# =============================================================================


class Auth0McpError(Exception):
    """Base exception for failures that end a CLI command.

    Attributes:
        exit_code: Process exit code used by the CLI layer.
        failure_type: Category string for logging.
    """

    exit_code: int = 1
    failure_type: str = "unknown"


class AuthenticationError(Auth0McpError):
    """No usable credentials.

    Raised when:
    - No token found in the credential store (user not initialized)
    - Token is expired and the refresh policy does not allow a refresh
    - Refresh failed and no valid token remains
    """

    exit_code = 13
    failure_type = "authentication_failure"


class DeviceFlowError(Auth0McpError):
    """Device authorization flow failed.

    Raised for errors returned by the device-code endpoint, unexpected token
    endpoint errors and network failures that end the flow.
    """

    failure_type = "device_flow_failure"


class DeviceFlowDeniedError(DeviceFlowError):
    """User denied the authorization request (access_denied)."""

    failure_type = "device_flow_denied"


class DeviceFlowExpiredError(DeviceFlowError):
    """Device code expired or the poll deadline passed before authorization."""

    failure_type = "device_flow_expired"


class DeviceFlowCancelledError(DeviceFlowError):
    """Poll loop was cancelled by the caller (cancel event set)."""

    exit_code = 130
    failure_type = "device_flow_cancelled"


class ClientCredentialsError(Auth0McpError):
    """Client-credentials grant failed (provider error or network failure)."""

    failure_type = "client_credentials_failure"


class ConfigurationError(Auth0McpError):
    """Configuration is invalid or incomplete.

    Raised when:
    - Config file contains invalid JSON
    - Config file fails Pydantic validation
    - A required value (e.g. client secret) is missing
    """

    exit_code = 16
    failure_type = "configuration_failure"


class UnsupportedPlatformError(ConfigurationError):
    """No MCP client config location is known for this operating system."""

    failure_type = "unsupported_platform"


class ScopeResolutionError(Auth0McpError):
    """A non-wildcard scope pattern did not match any known scope."""

    failure_type = "scope_resolution_failure"
