"""Read gitignore-syntax files into pattern lines.

Only the pattern language in ``treedoc.patterns`` is supported; negation and
escaping are treated as literal text.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

GITIGNORE_FILENAME = ".gitignore"
COMMENT_PREFIX = "#"


def parse_ignore_lines(lines: Iterable[str]) -> list[str]:
    """Return non-empty, non-comment lines in file order with line endings trimmed."""
    patterns: list[str] = []
    for raw in lines:
        line = raw.rstrip("\r\n").rstrip()
        if not line or line.lstrip().startswith(COMMENT_PREFIX):
            continue
        patterns.append(line)
    return patterns


def load_ignore_patterns(path: Path) -> list[str]:
    """Return pattern lines from ``path``; a missing file yields ``[]``."""
    if not path.is_file():
        return []
    text = path.read_text(encoding="utf-8", errors="replace")
    return parse_ignore_lines(text.splitlines())


def default_ignore_file(root: Path) -> Path:
    """Return the project-local ignore file location for ``root``."""
    return root / GITIGNORE_FILENAME


__all__ = [
    "GITIGNORE_FILENAME",
    "default_ignore_file",
    "load_ignore_patterns",
    "parse_ignore_lines",
]
