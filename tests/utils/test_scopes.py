"""Tests for scope pattern resolution."""

from __future__ import annotations

import pytest

from auth0_mcp.exceptions import ScopeResolutionError
from auth0_mcp.utils.scopes import DEFAULT_SCOPES, get_all_scopes, resolve_scopes

CATALOG = ["read:clients", "create:clients", "read:logs", "update:actions"]


class TestResolveScopes:
    def test_no_patterns_returns_defaults(self) -> None:
        assert resolve_scopes([], CATALOG) == DEFAULT_SCOPES
        assert resolve_scopes(None, CATALOG) == DEFAULT_SCOPES

    def test_wildcard_expands_in_catalog_order(self) -> None:
        assert resolve_scopes(["read:*"], CATALOG) == ["read:clients", "read:logs"]

    def test_mixed_patterns_deduplicate(self) -> None:
        result = resolve_scopes(["read:logs", "*:clients", "read:*"], CATALOG)

        assert result == ["read:clients", "create:clients", "read:logs"]

    def test_unknown_literal_raises_with_catalog(self) -> None:
        with pytest.raises(ScopeResolutionError) as exc_info:
            resolve_scopes(["read:clients", "delete:everything"], CATALOG)

        message = str(exc_info.value)
        assert "The following scopes are not valid: delete:everything" in message
        assert "Valid scopes are: read:clients, create:clients" in message

    def test_unmatched_wildcard_falls_back_to_defaults(self) -> None:
        assert resolve_scopes(["delete:*"], CATALOG) == DEFAULT_SCOPES

    def test_default_catalog_is_tool_scopes(self) -> None:
        scopes = get_all_scopes()

        assert "read:clients" in scopes
        assert len(scopes) == len(set(scopes))
        assert resolve_scopes(["read:logs"]) == ["read:logs"]
