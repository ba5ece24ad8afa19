"""Form tools."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field

from auth0_mcp.tools.base import ToolDefinition, current_api


async def list_forms(
    page: Annotated[int | None, Field(description="Page number (0-based)", ge=0)] = None,
    per_page: Annotated[int | None, Field(description="Number of forms per page", ge=1, le=100)] = None,
    include_totals: Annotated[bool, Field(description="Include total count")] = True,
) -> Any:
    """List all forms in the Auth0 tenant."""
    return await current_api().request(
        "GET",
        "/forms",
        params={"page": page, "per_page": per_page, "include_totals": include_totals},
    )


async def get_form(
    id: Annotated[str, Field(description="ID of the form to retrieve")],
) -> Any:
    """Get details about a specific Auth0 form."""
    return await current_api().request("GET", f"/forms/{id}")


async def create_form(
    name: Annotated[str, Field(description="Name of the form")],
    nodes: Annotated[list[dict[str, Any]] | None, Field(description="Form nodes (steps, flows, routers)")] = None,
    start: Annotated[dict[str, Any] | None, Field(description="Start node configuration")] = None,
    ending: Annotated[dict[str, Any] | None, Field(description="Ending node configuration")] = None,
) -> Any:
    """Create a new Auth0 form."""
    body: dict[str, Any] = {"name": name}
    for key, value in (("nodes", nodes), ("start", start), ("ending", ending)):
        if value is not None:
            body[key] = value
    return await current_api().request("POST", "/forms", json=body)


async def update_form(
    id: Annotated[str, Field(description="ID of the form to update")],
    name: Annotated[str | None, Field(description="New name of the form")] = None,
    nodes: Annotated[list[dict[str, Any]] | None, Field(description="Replacement form nodes")] = None,
) -> Any:
    """Update an existing Auth0 form."""
    body = {key: value for key, value in {"name": name, "nodes": nodes}.items() if value is not None}
    return await current_api().request("PATCH", f"/forms/{id}", json=body)


FORM_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="auth0_list_forms",
        description="List all forms in the Auth0 tenant",
        handler=list_forms,
        required_scopes=("read:forms",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_get_form",
        description="Get details about a specific Auth0 form",
        handler=get_form,
        required_scopes=("read:forms",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_create_form",
        description="Create a new Auth0 form",
        handler=create_form,
        required_scopes=("create:forms",),
    ),
    ToolDefinition(
        name="auth0_update_form",
        description="Update an existing Auth0 form",
        handler=update_form,
        required_scopes=("update:forms",),
    ),
)
