"""Resource server (API) tools."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field

from auth0_mcp.tools.base import ToolDefinition, current_api


async def list_resource_servers(
    page: Annotated[int | None, Field(description="Page number (0-based)", ge=0)] = None,
    per_page: Annotated[int | None, Field(description="Number of resource servers per page", ge=1, le=100)] = None,
    include_totals: Annotated[bool, Field(description="Include total count")] = True,
) -> Any:
    """List all resource servers (APIs) in the Auth0 tenant."""
    return await current_api().request(
        "GET",
        "/resource-servers",
        params={"page": page, "per_page": per_page, "include_totals": include_totals},
    )


async def get_resource_server(
    id: Annotated[str, Field(description="ID or audience of the resource server")],
) -> Any:
    """Get details about a specific Auth0 resource server."""
    return await current_api().request("GET", f"/resource-servers/{id}")


async def create_resource_server(
    name: Annotated[str, Field(description="Name of the resource server")],
    identifier: Annotated[str, Field(description="Unique identifier (audience), usually a URL")],
    scopes: Annotated[
        list[dict[str, str]] | None,
        Field(description="Scopes as objects with 'value' and 'description'"),
    ] = None,
    signing_alg: Annotated[str | None, Field(description="Signing algorithm, e.g. RS256")] = None,
    token_lifetime: Annotated[int | None, Field(description="Access token lifetime in seconds", ge=1)] = None,
) -> Any:
    """Create a new Auth0 resource server."""
    body: dict[str, Any] = {"name": name, "identifier": identifier}
    if scopes is not None:
        body["scopes"] = scopes
    if signing_alg is not None:
        body["signing_alg"] = signing_alg
    if token_lifetime is not None:
        body["token_lifetime"] = token_lifetime
    return await current_api().request("POST", "/resource-servers", json=body)


async def update_resource_server(
    id: Annotated[str, Field(description="ID of the resource server to update")],
    name: Annotated[str | None, Field(description="New name")] = None,
    scopes: Annotated[
        list[dict[str, str]] | None,
        Field(description="Replacement scopes as objects with 'value' and 'description'"),
    ] = None,
    token_lifetime: Annotated[int | None, Field(description="New access token lifetime in seconds", ge=1)] = None,
) -> Any:
    """Update an existing Auth0 resource server."""
    body = {
        key: value
        for key, value in {"name": name, "scopes": scopes, "token_lifetime": token_lifetime}.items()
        if value is not None
    }
    return await current_api().request("PATCH", f"/resource-servers/{id}", json=body)


RESOURCE_SERVER_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="auth0_list_resource_servers",
        description="List all resource servers (APIs) in the Auth0 tenant",
        handler=list_resource_servers,
        required_scopes=("read:resource_servers",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_get_resource_server",
        description="Get details about a specific Auth0 resource server",
        handler=get_resource_server,
        required_scopes=("read:resource_servers",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_create_resource_server",
        description="Create a new Auth0 resource server (API)",
        handler=create_resource_server,
        required_scopes=("create:resource_servers",),
    ),
    ToolDefinition(
        name="auth0_update_resource_server",
        description="Update an existing Auth0 resource server",
        handler=update_resource_server,
        required_scopes=("update:resource_servers",),
    ),
)
