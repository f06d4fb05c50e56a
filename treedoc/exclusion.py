"""Literal-name and pattern based exclusion rules.

An ``ExclusionSet`` is built once from configuration and then only read while
the selector walks the tree.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .patterns import PatternMatcher, compile_pattern, normalize_relative_path

_SEPARATOR_RE = re.compile(r"[\\/]")


def path_segments(path: str) -> list[str]:
    """Split ``path`` on either separator convention, dropping empty parts."""
    return [segment for segment in _SEPARATOR_RE.split(path) if segment and segment != "."]


@dataclass
class ExclusionSet:
    """Literal names/paths plus compiled ignore patterns.

    Literal names are compared case-insensitively against every segment of the
    candidate path. A literal containing a separator is treated as a relative
    path and excludes that path and everything under it.
    """

    literals: list[str] = field(default_factory=list)
    patterns: list[PatternMatcher] = field(default_factory=list)
    _names: set[str] = field(default_factory=set, init=False, repr=False)
    _paths: set[tuple[str, ...]] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        literals = list(self.literals)
        self.literals = []
        for literal in literals:
            self.add_literal(literal)

    @classmethod
    def from_config(cls, literals: Iterable[str] = (), patterns: Iterable[str] = ()) -> ExclusionSet:
        """Build a set from literal names and raw pattern lines."""
        exclusion = cls()
        for literal in literals:
            exclusion.add_literal(literal)
        for pattern in patterns:
            exclusion.add_pattern(pattern)
        return exclusion

    def add_literal(self, name: str) -> None:
        """Add one literal file/directory name or relative path."""
        segments = tuple(segment.casefold() for segment in path_segments(name))
        if not segments:
            return
        self.literals.append(name)
        if len(segments) == 1:
            self._names.add(segments[0])
        else:
            self._paths.add(segments)

    def add_pattern(self, pattern_text: str) -> None:
        """Compile and add one ignore pattern line."""
        self.patterns.append(compile_pattern(pattern_text))

    def is_excluded_by_name(self, path: str) -> bool:
        """Return whether any literal matches a segment (or leading path) of ``path``."""
        segments = [segment.casefold() for segment in path_segments(path)]
        if any(segment in self._names for segment in segments):
            return True
        for literal in self._paths:
            if tuple(segments[: len(literal)]) == literal:
                return True
        return False

    def is_ignored_by_pattern(self, path: str, is_dir: bool) -> bool:
        """Return whether any compiled pattern matches ``path``."""
        relative = normalize_relative_path(path)
        return any(matcher.matches(relative, is_dir) for matcher in self.patterns)

    def is_excluded(self, path: str, is_dir: bool = False) -> bool:
        """Return whether ``path`` (relative to the scan root) is excluded."""
        return self.is_excluded_by_name(path) or self.is_ignored_by_pattern(path, is_dir)


__all__ = [
    "ExclusionSet",
    "path_segments",
]
