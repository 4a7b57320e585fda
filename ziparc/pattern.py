from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Optional, Pattern, Sequence


def _translate(pattern: str) -> str:
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append("[^/]*")
        elif ch == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Optional[Pattern[str]]:
    try:
        return re.compile(_translate(pattern), re.DOTALL)
    except re.error:
        return None


def matches(path: str, pattern: str, case_insensitive: bool = False) -> bool:
    """Anchored glob match of ``pattern`` against the whole of ``path``.

    ``*`` matches any run of characters within one path segment (including
    none) and ``?`` exactly one; every other character is literal. If the
    pattern cannot be compiled the check degrades to a substring test on the
    pattern with its outer ``*`` removed.
    """
    if case_insensitive:
        path = path.lower()
        pattern = pattern.lower()
    rx = _compile(pattern)
    if rx is None:
        return pattern.strip("*") in path
    return rx.fullmatch(path) is not None


def _leaf(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


def pattern_hits(path: str, pattern: str, case_insensitive: bool = False) -> bool:
    """Filter-level match: the full path, or the last segment for slash-free patterns."""
    if matches(path, pattern, case_insensitive):
        return True
    if "/" not in pattern and "/" in path.rstrip("/"):
        return matches(_leaf(path), pattern, case_insensitive)
    return False


def _any_hit(path: str, patterns: Iterable[str], case_insensitive: bool) -> bool:
    return any(pattern_hits(path, p, case_insensitive) for p in patterns)


class BuildFilter:
    """Inclusion rules applied while collecting entries for a new archive.

    Order: excluded suffix, then exclude patterns, then (if any) include
    patterns. Exclusion always wins over inclusion.
    """

    def __init__(
        self,
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        exclude_suffixes: Sequence[str] = (),
    ):
        self.include = tuple(include)
        self.exclude = tuple(exclude)
        self.exclude_suffixes = tuple(exclude_suffixes)

    def accepts(self, path: str) -> bool:
        if any(path.endswith(s) for s in self.exclude_suffixes if s):
            return False
        if _any_hit(path, self.exclude, False):
            return False
        if self.include:
            return _any_hit(path, self.include, False)
        return True


class ExtractFilter:
    """Selection rules for extract/list: file patterns, exclude, then include."""

    def __init__(
        self,
        file_patterns: Sequence[str] = (),
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        case_insensitive: bool = False,
    ):
        self.file_patterns = tuple(file_patterns)
        self.include = tuple(include)
        self.exclude = tuple(exclude)
        self.case_insensitive = case_insensitive

    def accepts(self, path: str) -> bool:
        ci = self.case_insensitive
        if self.file_patterns and not _any_hit(path, self.file_patterns, ci):
            return False
        if _any_hit(path, self.exclude, ci):
            return False
        if self.include:
            return _any_hit(path, self.include, ci)
        return True
