"""Application (client) tools."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field

from auth0_mcp.tools.base import ToolDefinition, current_api

AppType = Literal["native", "spa", "regular_web", "non_interactive"]


async def list_applications(
    page: Annotated[int | None, Field(description="Page number (0-based)", ge=0)] = None,
    per_page: Annotated[int | None, Field(description="Number of applications per page", ge=1, le=100)] = None,
    include_totals: Annotated[bool, Field(description="Include total count")] = True,
) -> Any:
    """List all applications in the Auth0 tenant."""
    return await current_api().request(
        "GET",
        "/clients",
        params={"page": page, "per_page": per_page, "include_totals": include_totals},
    )


async def get_application(
    client_id: Annotated[str, Field(description="Client ID of the application to retrieve")],
) -> Any:
    """Get details about a specific Auth0 application."""
    return await current_api().request("GET", f"/clients/{client_id}")


async def create_application(
    name: Annotated[str, Field(description="Name of the application")],
    app_type: Annotated[AppType, Field(description="Type of application")],
    description: Annotated[str | None, Field(description="Description of the application")] = None,
    callbacks: Annotated[list[str] | None, Field(description="Allowed callback URLs")] = None,
    allowed_origins: Annotated[list[str] | None, Field(description="Allowed origins for CORS")] = None,
) -> Any:
    """Create a new Auth0 application."""
    body: dict[str, Any] = {"name": name, "app_type": app_type}
    if description is not None:
        body["description"] = description
    if callbacks is not None:
        body["callbacks"] = callbacks
    if allowed_origins is not None:
        body["allowed_origins"] = allowed_origins
    return await current_api().request("POST", "/clients", json=body)


async def update_application(
    client_id: Annotated[str, Field(description="Client ID of the application to update")],
    name: Annotated[str | None, Field(description="New name of the application")] = None,
    description: Annotated[str | None, Field(description="New description of the application")] = None,
    callbacks: Annotated[list[str] | None, Field(description="New allowed callback URLs")] = None,
    allowed_origins: Annotated[list[str] | None, Field(description="New allowed origins for CORS")] = None,
) -> Any:
    """Update an existing Auth0 application."""
    body = {
        key: value
        for key, value in {
            "name": name,
            "description": description,
            "callbacks": callbacks,
            "allowed_origins": allowed_origins,
        }.items()
        if value is not None
    }
    return await current_api().request("PATCH", f"/clients/{client_id}", json=body)


APPLICATION_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="auth0_list_applications",
        description="List all applications in the Auth0 tenant",
        handler=list_applications,
        required_scopes=("read:clients",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_get_application",
        description="Get details about a specific Auth0 application",
        handler=get_application,
        required_scopes=("read:clients",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_create_application",
        description="Create a new Auth0 application",
        handler=create_application,
        required_scopes=("create:clients",),
    ),
    ToolDefinition(
        name="auth0_update_application",
        description="Update an existing Auth0 application",
        handler=update_application,
        required_scopes=("update:clients",),
    ),
)
