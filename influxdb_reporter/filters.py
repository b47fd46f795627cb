"""Include/exclude name filters used to decide which tags are reported.

Patterns are globs unless prefixed with ``regex:``; an explicit ``glob:``
prefix is also accepted.  Glob syntax:

    **   any sequence of characters
    *    any sequence of characters except ``/``
    ?    a single character other than ``/``
    \\x   the literal character ``x``

A pattern must match the whole name.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from influxdb_reporter.config import TagFilterConfig

_GLOB_TOKEN_RE = re.compile(r"(\*\*?)|(\?)|(\\.)|([^*?\\]+)")


def glob_to_regex(glob: str) -> re.Pattern[str]:
    """Compile a glob pattern into an anchored regular expression."""
    parts: list[str] = []
    for match in _GLOB_TOKEN_RE.finditer(glob):
        stars, question, escaped, literal = match.groups()
        if stars == "**":
            parts.append(".*")
        elif stars == "*":
            parts.append("[^/]*")
        elif question:
            parts.append("[^/]")
        elif escaped:
            parts.append(re.escape(escaped[1]))
        else:
            parts.append(re.escape(literal))
    return re.compile("".join(parts), re.DOTALL)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    if pattern.startswith("regex:"):
        return re.compile(pattern[len("regex:"):])
    if pattern.startswith("glob:"):
        return glob_to_regex(pattern[len("glob:"):])
    return glob_to_regex(pattern)


class Filter:
    """Accepts a name when any include matches and no exclude does."""

    def __init__(self, includes: Iterable[str], excludes: Iterable[str] = ()) -> None:
        self._includes = tuple(includes)
        self._excludes = tuple(excludes)
        self._include_res = [compile_pattern(p) for p in self._includes]
        self._exclude_res = [compile_pattern(p) for p in self._excludes]

    @classmethod
    def accept_all(cls) -> Filter:
        return cls(includes=("**",))

    @classmethod
    def from_config(cls, config: TagFilterConfig) -> Filter:
        return cls(includes=config.includes, excludes=config.excludes)

    def accept(self, name: str) -> bool:
        if not any(r.fullmatch(name) for r in self._include_res):
            return False
        return not any(r.fullmatch(name) for r in self._exclude_res)

    def __repr__(self) -> str:
        return f"Filter(includes={list(self._includes)!r}, excludes={list(self._excludes)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Filter):
            return NotImplemented
        return (self._includes, self._excludes) == (other._includes, other._excludes)

    def __hash__(self) -> int:
        return hash((self._includes, self._excludes))
