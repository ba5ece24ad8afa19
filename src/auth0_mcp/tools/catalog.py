"""Tool catalog: every tool, plus selection by name pattern and read-only mode."""

from __future__ import annotations

__all__ = [
    "ALL_TOOLS",
    "filter_tools",
    "get_all_scopes",
    "get_tool",
    "validate_tool_patterns",
]

from collections.abc import Sequence

from auth0_mcp.telemetry.system.system_logger import get_system_logger
from auth0_mcp.tools.actions import ACTION_TOOLS
from auth0_mcp.tools.applications import APPLICATION_TOOLS
from auth0_mcp.tools.base import ToolDefinition
from auth0_mcp.tools.forms import FORM_TOOLS
from auth0_mcp.tools.logs import LOG_TOOLS
from auth0_mcp.tools.resource_servers import RESOURCE_SERVER_TOOLS
from auth0_mcp.utils.glob import compile_pattern

ALL_TOOLS: tuple[ToolDefinition, ...] = (
    *APPLICATION_TOOLS,
    *RESOURCE_SERVER_TOOLS,
    *ACTION_TOOLS,
    *LOG_TOOLS,
    *FORM_TOOLS,
)


def get_tool(name: str, tools: Sequence[ToolDefinition] = ALL_TOOLS) -> ToolDefinition | None:
    return next((tool for tool in tools if tool.name == name), None)


def get_all_scopes(tools: Sequence[ToolDefinition] = ALL_TOOLS) -> list[str]:
    """Unique scopes required across tools, in first-seen order."""
    return list(dict.fromkeys(scope for tool in tools for scope in tool.required_scopes))


def validate_tool_patterns(patterns: Sequence[str], tools: Sequence[ToolDefinition] = ALL_TOOLS) -> None:
    """Check that every pattern matches at least one tool.

    Raises:
        ValueError: Naming the first pattern that matches nothing.
    """
    names = [tool.name for tool in tools]
    for raw in patterns:
        pattern = compile_pattern(raw)
        if not any(pattern.matches(name) for name in names):
            prefix = "No tools match the pattern" if pattern.has_wildcards else "Invalid tool"
            raise ValueError(f"{prefix}: {pattern}. Accepted tools are: {', '.join(names)}")


def filter_tools(
    tools: Sequence[ToolDefinition] = ALL_TOOLS,
    patterns: Sequence[str] | None = None,
    *,
    read_only: bool = False,
) -> list[ToolDefinition]:
    """Select tools by name pattern and read-only mode.

    No patterns (or a single "*") selects every tool. read_only drops every
    tool that can modify tenant state, whatever the patterns say.

    Args:
        tools: Candidate tools.
        patterns: Glob patterns over tool names.
        read_only: Keep only read-only tools.

    Returns:
        Selected tools in catalog order.
    """
    logger = get_system_logger()
    selected = list(tools)

    if patterns and list(patterns) != ["*"]:
        compiled = [compile_pattern(p) for p in patterns]
        selected = [tool for tool in selected if any(p.matches(tool.name) for p in compiled)]
        for pattern in compiled:
            if pattern.has_wildcards:
                count = sum(1 for tool in selected if pattern.matches(tool.name))
                logger.debug({"event": "tool_pattern_matched", "pattern": str(pattern), "count": count})

    if read_only:
        selected = [tool for tool in selected if tool.read_only]

    logger.debug(
        {
            "event": "tools_selected",
            "count": len(selected),
            "read_only": read_only,
            "message": f"Selected {len(selected)} available tools based on patterns",
        }
    )
    return selected
