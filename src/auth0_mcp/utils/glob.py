"""Glob-style name patterns for scopes and tool names.

A pattern is either a Literal (exact match) or a Wildcard (contains * or ?).
Patterns are compiled once into a matcher:
- * : matches any sequence of characters (including empty)
- ? : matches exactly one character

Every other character, brackets included, matches itself.
"""

from __future__ import annotations

__all__ = [
    "GlobPattern",
    "Literal",
    "Wildcard",
    "compile_pattern",
    "matches",
]

import re
from dataclasses import dataclass, field
from typing import Union

_WILDCARD_CHARS = ("*", "?")


@dataclass(frozen=True)
class Literal:
    """Pattern without wildcards; matches by equality."""

    pattern: str

    @property
    def has_wildcards(self) -> bool:
        return False

    def matches(self, value: str | None) -> bool:
        return value is not None and value == self.pattern

    def __str__(self) -> str:
        return self.pattern


@dataclass(frozen=True)
class Wildcard:
    """Pattern containing * or ?; matches the whole string."""

    pattern: str
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        parts = []
        for char in self.pattern:
            if char == "*":
                parts.append(".*")
            elif char == "?":
                parts.append(".")
            else:
                parts.append(re.escape(char))
        object.__setattr__(self, "_regex", re.compile("".join(parts), re.DOTALL))

    @property
    def has_wildcards(self) -> bool:
        return True

    def matches(self, value: str | None) -> bool:
        return value is not None and self._regex.fullmatch(value) is not None

    def __str__(self) -> str:
        return self.pattern


GlobPattern = Union[Literal, Wildcard]


def compile_pattern(pattern: str) -> GlobPattern:
    """Compile a pattern string. Surrounding whitespace is ignored.

    Example:
        >>> compile_pattern("read:*").matches("read:clients")
        True
        >>> compile_pattern("auth0_list_?pplications").has_wildcards
        True
    """
    pattern = pattern.strip()
    if any(char in pattern for char in _WILDCARD_CHARS):
        return Wildcard(pattern)
    return Literal(pattern)


def matches(value: str | None, pattern: str) -> bool:
    """One-off match of value against pattern."""
    return compile_pattern(pattern).matches(value)
