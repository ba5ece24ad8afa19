"""Action tools."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, Field

from auth0_mcp.tools.base import ToolDefinition, current_api


class ActionDependency(BaseModel):
    name: str = Field(description="Name of the npm dependency")
    version: str = Field(description="Version of the npm dependency")


class ActionSecret(BaseModel):
    name: str = Field(description="Name of the secret")
    value: str = Field(description="Value of the secret")


async def list_actions(
    page: Annotated[int | None, Field(description="Page number (0-based)", ge=0)] = None,
    per_page: Annotated[int | None, Field(description="Number of actions per page", ge=1, le=100)] = None,
    trigger_id: Annotated[str | None, Field(description="Filter by trigger ID")] = None,
) -> Any:
    """List all actions in the Auth0 tenant."""
    return await current_api().request(
        "GET",
        "/actions/actions",
        params={"page": page, "per_page": per_page, "triggerId": trigger_id},
    )


async def get_action(
    id: Annotated[str, Field(description="ID of the action to retrieve")],
) -> Any:
    """Get details about a specific Auth0 action."""
    return await current_api().request("GET", f"/actions/actions/{id}")


async def create_action(
    name: Annotated[str, Field(description="Name of the action")],
    trigger_id: Annotated[str, Field(description="ID of the trigger (e.g., post-login)")],
    code: Annotated[str, Field(description="JavaScript code for the action")],
    runtime: Annotated[str, Field(description="Runtime for the action")] = "node18",
    dependencies: Annotated[list[ActionDependency] | None, Field(description="npm dependencies")] = None,
    secrets: Annotated[list[ActionSecret] | None, Field(description="Secrets for the action")] = None,
) -> Any:
    """Create a new Auth0 action."""
    body: dict[str, Any] = {
        "name": name,
        "supported_triggers": [{"id": trigger_id, "version": "v3"}],
        "code": code,
        "runtime": runtime,
    }
    if dependencies:
        body["dependencies"] = [d.model_dump() for d in dependencies]
    if secrets:
        body["secrets"] = [s.model_dump() for s in secrets]
    return await current_api().request("POST", "/actions/actions", json=body)


async def update_action(
    id: Annotated[str, Field(description="ID of the action to update")],
    name: Annotated[str | None, Field(description="New name of the action")] = None,
    code: Annotated[str | None, Field(description="New JavaScript code for the action")] = None,
    dependencies: Annotated[list[ActionDependency] | None, Field(description="New npm dependencies")] = None,
    secrets: Annotated[list[ActionSecret] | None, Field(description="Secrets to update")] = None,
) -> Any:
    """Update an existing Auth0 action."""
    body: dict[str, Any] = {}
    if name is not None:
        body["name"] = name
    if code is not None:
        body["code"] = code
    if dependencies is not None:
        body["dependencies"] = [d.model_dump() for d in dependencies]
    if secrets is not None:
        body["secrets"] = [s.model_dump() for s in secrets]
    return await current_api().request("PATCH", f"/actions/actions/{id}", json=body)


async def deploy_action(
    id: Annotated[str, Field(description="ID of the action to deploy")],
) -> Any:
    """Deploy an Auth0 action so it runs on its trigger."""
    return await current_api().request("POST", f"/actions/actions/{id}/deploy")


ACTION_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="auth0_list_actions",
        description="List all actions in the Auth0 tenant",
        handler=list_actions,
        required_scopes=("read:actions",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_get_action",
        description="Get details about a specific Auth0 action",
        handler=get_action,
        required_scopes=("read:actions",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_create_action",
        description="Create a new Auth0 action",
        handler=create_action,
        required_scopes=("create:actions",),
    ),
    ToolDefinition(
        name="auth0_update_action",
        description="Update an existing Auth0 action",
        handler=update_action,
        required_scopes=("update:actions",),
    ),
    ToolDefinition(
        name="auth0_deploy_action",
        description="Deploy an Auth0 action",
        handler=deploy_action,
        required_scopes=("update:actions",),
    ),
)
