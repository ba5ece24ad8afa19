"""Tests for the tool catalog and tool selection."""

from __future__ import annotations

import inspect

import pytest

from auth0_mcp.tools.catalog import ALL_TOOLS, filter_tools, get_all_scopes, get_tool, validate_tool_patterns


class TestCatalog:
    def test_tool_names_are_unique_and_prefixed(self) -> None:
        names = [tool.name for tool in ALL_TOOLS]

        assert len(names) == len(set(names))
        assert all(name.startswith("auth0_") for name in names)

    def test_every_tool_declares_scopes(self) -> None:
        assert all(tool.required_scopes for tool in ALL_TOOLS)

    def test_handlers_are_async(self) -> None:
        assert all(inspect.iscoroutinefunction(tool.handler) for tool in ALL_TOOLS)

    def test_read_only_tools_only_need_read_scopes(self) -> None:
        for tool in ALL_TOOLS:
            if tool.read_only:
                assert all(scope.startswith("read:") for scope in tool.required_scopes), tool.name

    def test_get_tool(self) -> None:
        tool = get_tool("auth0_list_applications")

        assert tool is not None
        assert tool.required_scopes == ("read:clients",)
        assert get_tool("auth0_drop_tenant") is None

    def test_get_all_scopes_deduplicates(self) -> None:
        scopes = get_all_scopes()

        assert scopes.count("read:clients") == 1
        assert "update:actions" in scopes


class TestFilterTools:
    def test_no_patterns_selects_all(self) -> None:
        assert filter_tools(ALL_TOOLS) == list(ALL_TOOLS)
        assert filter_tools(ALL_TOOLS, ["*"]) == list(ALL_TOOLS)

    def test_wildcard_pattern(self) -> None:
        names = [tool.name for tool in filter_tools(ALL_TOOLS, ["auth0_list_*"])]

        assert names == [
            "auth0_list_applications",
            "auth0_list_resource_servers",
            "auth0_list_actions",
            "auth0_list_logs",
            "auth0_list_forms",
        ]

    def test_literal_and_wildcard_combined(self) -> None:
        names = {tool.name for tool in filter_tools(ALL_TOOLS, ["auth0_get_log", "*_form"])}

        assert names == {"auth0_get_log", "auth0_get_form", "auth0_create_form", "auth0_update_form"}

    def test_read_only_drops_mutating_tools(self) -> None:
        """Given read_only, tools that modify the tenant are excluded even if named."""
        selected = filter_tools(ALL_TOOLS, ["auth0_create_application", "auth0_get_application"], read_only=True)

        assert [tool.name for tool in selected] == ["auth0_get_application"]

    def test_read_only_with_all_tools(self) -> None:
        selected = filter_tools(ALL_TOOLS, read_only=True)

        assert selected
        assert all(tool.read_only for tool in selected)


class TestValidateToolPatterns:
    def test_valid_patterns_pass(self) -> None:
        validate_tool_patterns(["*", "auth0_list_*", "auth0_get_log"])

    def test_unknown_literal(self) -> None:
        with pytest.raises(ValueError, match="Invalid tool: auth0_drop_tenant. Accepted tools are: auth0_list_applications"):
            validate_tool_patterns(["auth0_drop_tenant"])

    def test_unmatched_wildcard(self) -> None:
        with pytest.raises(ValueError, match="No tools match the pattern: auth0_delete_"):
            validate_tool_patterns(["auth0_delete_*"])
