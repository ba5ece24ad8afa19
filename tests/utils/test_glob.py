"""Tests for glob-style name patterns."""

from __future__ import annotations

import pytest

from auth0_mcp.utils.glob import Literal, Wildcard, compile_pattern, matches


class TestCompilePattern:
    def test_plain_text_is_literal(self) -> None:
        assert isinstance(compile_pattern("read:clients"), Literal)

    @pytest.mark.parametrize("pattern", ["read:*", "auth0_get_?pplication", "*"])
    def test_wildcard_chars_make_wildcard(self, pattern: str) -> None:
        assert isinstance(compile_pattern(pattern), Wildcard)

    def test_surrounding_whitespace_ignored(self) -> None:
        assert compile_pattern("  read:logs ").matches("read:logs")


class TestMatches:
    @pytest.mark.parametrize(
        "value,pattern,expected",
        [
            ("read:clients", "read:*", True),
            ("create:clients", "read:*", False),
            ("auth0_list_actions", "auth0_list_*", True),
            ("auth0_get_action", "auth0_?et_action", True),
            ("auth0_get_action", "auth0_?_action", False),
            ("read:clients", "*:clients", True),
            ("read:clients", "read:clients", True),
            ("read:clients", "read:client", False),
            ("anything", "*", True),
            ("", "*", True),
        ],
    )
    def test_matches(self, value: str, pattern: str, expected: bool) -> None:
        assert matches(value, pattern) is expected

    def test_regex_metacharacters_match_themselves(self) -> None:
        assert matches("a.b[1]", "a.b[1]*") is True
        assert matches("axb[1]", "a.b[1]*") is False

    def test_none_never_matches(self) -> None:
        assert matches(None, "*") is False
        assert matches(None, "x") is False
