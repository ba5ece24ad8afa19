"""Tenant log tools (read-only)."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field

from auth0_mcp.tools.base import ToolDefinition, current_api


async def list_logs(
    q: Annotated[str | None, Field(description="Lucene query to filter logs")] = None,
    page: Annotated[int | None, Field(description="Page number (0-based)", ge=0)] = None,
    per_page: Annotated[int | None, Field(description="Number of entries per page", ge=1, le=100)] = None,
    sort: Annotated[str | None, Field(description="Sort field and order, e.g. 'date:-1'")] = None,
) -> Any:
    """List log entries from the Auth0 tenant."""
    return await current_api().request(
        "GET",
        "/logs",
        params={"q": q, "page": page, "per_page": per_page, "sort": sort},
    )


async def get_log(
    id: Annotated[str, Field(description="ID of the log entry to retrieve")],
) -> Any:
    """Get a specific log entry."""
    return await current_api().request("GET", f"/logs/{id}")


LOG_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="auth0_list_logs",
        description="List logs from the Auth0 tenant",
        handler=list_logs,
        required_scopes=("read:logs",),
        read_only=True,
    ),
    ToolDefinition(
        name="auth0_get_log",
        description="Get a specific log entry by ID",
        handler=get_log,
        required_scopes=("read:logs",),
        read_only=True,
    ),
)
