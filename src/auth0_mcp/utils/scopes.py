"""Scope catalog and scope-pattern resolution for `init --scopes`."""

from __future__ import annotations

__all__ = [
    "DEFAULT_SCOPES",
    "get_all_scopes",
    "resolve_scopes",
]

from collections.abc import Sequence

from auth0_mcp.exceptions import ScopeResolutionError
from auth0_mcp.telemetry.system.system_logger import get_system_logger
from auth0_mcp.tools.catalog import ALL_TOOLS
from auth0_mcp.tools.catalog import get_all_scopes as _tool_scopes
from auth0_mcp.utils.glob import compile_pattern

# Least privilege: nothing is requested unless asked for
DEFAULT_SCOPES: list[str] = []


def get_all_scopes() -> list[str]:
    """Every scope required by at least one tool, deduplicated."""
    return _tool_scopes(ALL_TOOLS)


def resolve_scopes(patterns: Sequence[str] | None, available: Sequence[str] | None = None) -> list[str]:
    """Expand scope patterns against the scope catalog.

    Args:
        patterns: Literal scopes or glob patterns (e.g. "read:*").
        available: Scope catalog, defaults to every tool scope.

    Returns:
        Matched scopes in catalog order. DEFAULT_SCOPES when no patterns
        were given or none matched.

    Raises:
        ScopeResolutionError: A non-wildcard pattern matched nothing.
    """
    logger = get_system_logger()
    if not patterns:
        return list(DEFAULT_SCOPES)

    catalog = list(available) if available is not None else get_all_scopes()
    matched: list[str] = []
    invalid: list[str] = []

    for raw in patterns:
        pattern = compile_pattern(raw)
        hits = [scope for scope in catalog if pattern.matches(scope)]
        if not hits and not pattern.has_wildcards:
            invalid.append(str(pattern))
        matched.extend(scope for scope in hits if scope not in matched)

    if invalid:
        logger.error(
            {
                "event": "invalid_scopes",
                "scopes": invalid,
                "message": f"The following scopes are not valid: {', '.join(invalid)}",
            }
        )
        raise ScopeResolutionError(
            f"The following scopes are not valid: {', '.join(invalid)}\n"
            f"Valid scopes are: {', '.join(catalog)}"
        )

    if not matched:
        logger.warning(
            {"event": "no_scopes_matched", "message": "No scopes matched the provided patterns"}
        )
        return list(DEFAULT_SCOPES)

    # Keep catalog order regardless of pattern order
    return [scope for scope in catalog if scope in matched]
