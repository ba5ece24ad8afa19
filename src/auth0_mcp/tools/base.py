"""Shared pieces of the Management API tool catalog.

Tool handlers never read the credential store. The server resolves valid
credentials for each call, wraps them in a ManagementApiClient and binds it
for the duration of the call; handlers fetch it with current_api().
"""

from __future__ import annotations

__all__ = [
    "ManagementApiClient",
    "ToolDefinition",
    "bind_api",
    "current_api",
    "format_domain",
]

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

import httpx
from fastmcp.exceptions import ToolError

from auth0_mcp.constants import MANAGEMENT_API_PATH, MANAGEMENT_API_TIMEOUT_SECONDS
from auth0_mcp.security.credential_store import Credentials
from auth0_mcp.security.masking import mask_sensitive_fields
from auth0_mcp.telemetry.system.system_logger import get_system_logger


@dataclass(frozen=True)
class ToolDefinition:
    """One MCP tool backed by the Management API.

    Attributes:
        name: Tool name exposed to MCP clients.
        description: Tool description exposed to MCP clients.
        handler: Async function; its signature defines the input schema.
        required_scopes: Management API scopes the call needs.
        read_only: True if the tool never modifies tenant state.
    """

    name: str
    description: str
    handler: Callable[..., Awaitable[Any]]
    required_scopes: tuple[str, ...] = ()
    read_only: bool = False


def format_domain(domain: str) -> str:
    """Normalize a tenant domain: no scheme, no trailing slash.

    A bare tenant name without a dot is expanded to the US region host.
    """
    if not domain:
        return ""

    formatted = domain
    for prefix in ("https://", "http://"):
        if formatted.startswith(prefix):
            formatted = formatted[len(prefix) :]
    formatted = formatted.rstrip("/")

    return formatted if "." in formatted else f"{formatted}.us.auth0.com"


class ManagementApiClient:
    """Async client for one tenant's Management API.

    Responses are masked with mask_sensitive_fields() before they are returned.
    Failures raise ToolError, which FastMCP turns into an error result.
    """

    def __init__(self, credentials: Credentials, http_client: httpx.AsyncClient | None = None) -> None:
        self._credentials = credentials
        self._client = http_client or httpx.AsyncClient(timeout=MANAGEMENT_API_TIMEOUT_SECONDS)
        self._owns_client = http_client is None
        self._base_url = f"https://{format_domain(credentials.domain)}{MANAGEMENT_API_PATH.rstrip('/')}"

    @property
    def domain(self) -> str:
        return self._credentials.domain

    async def __aenter__(self) -> "ManagementApiClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Call the Management API and return the masked JSON body.

        Args:
            method: HTTP method.
            path: Path below /api/v2, e.g. "/clients".
            params: Query parameters; None values are dropped.
            json: JSON body.

        Raises:
            ToolError: On network failure or a non-2xx response.
        """
        url = f"{self._base_url}{path}"
        query = {k: _query_value(v) for k, v in (params or {}).items() if v is not None}

        try:
            response = await self._client.request(
                method,
                url,
                params=query or None,
                json=json,
                headers={
                    "Authorization": f"Bearer {self._credentials.access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            raise ToolError("Request timed out. The Auth0 API did not respond in time.") from e
        except httpx.HTTPError as e:
            raise ToolError(f"Network error: {e}") from e

        if response.status_code >= 400:
            raise ToolError(_error_message(response))

        if response.status_code == 204 or not response.content:
            return {"status": "ok"}

        try:
            body = response.json()
        except ValueError as e:
            raise ToolError(f"Auth0 API returned invalid JSON (HTTP {response.status_code})") from e

        return mask_sensitive_fields(body)


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _error_message(response: httpx.Response) -> str:
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None

    detail = ""
    if isinstance(body, dict):
        detail = str(body.get("message") or body.get("error_description") or body.get("error") or "")

    if status == 401:
        hint = " Run 'auth0-mcp init' to re-authenticate."
    elif status == 403:
        hint = " The token lacks the scope required for this operation."
    else:
        hint = ""

    get_system_logger().warning(
        {
            "event": "management_api_error",
            "status_code": status,
            "message": f"Auth0 API error ({status}): {detail or response.reason_phrase}",
        }
    )
    return f"Auth0 API error ({status}): {detail or response.reason_phrase}.{hint}".rstrip()


_current_api: ContextVar[ManagementApiClient | None] = ContextVar("auth0_mcp_current_api", default=None)


@contextmanager
def bind_api(api: ManagementApiClient) -> Iterator[ManagementApiClient]:
    """Make api available to tool handlers for the duration of the block."""
    token = _current_api.set(api)
    try:
        yield api
    finally:
        _current_api.reset(token)


def current_api() -> ManagementApiClient:
    """Return the client bound for the current tool call.

    Raises:
        ToolError: If no credentials were resolved for this call.
    """
    api = _current_api.get()
    if api is None:
        raise ToolError("No valid Auth0 credentials. Run 'auth0-mcp init' to authenticate.")
    return api
