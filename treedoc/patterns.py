"""Compile gitignore-style pattern lines into path predicates.

Patterns are matched against ``/``-separated paths relative to the scan root,
case-insensitively. ``**`` spans any number of whole segments; a trailing
``/`` restricts a pattern to directories.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


def normalize_relative_path(path: str) -> str:
    """Return ``path`` with ``\\`` separators folded to ``/`` and no edge slashes."""
    return path.replace("\\", "/").strip("/")


def _translate_segment(segment: str) -> str:
    """Translate one non-``**`` segment into a regex fragment."""
    out: list[str] = []
    for ch in segment:
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(ch))
    return "".join(out)


def _translate(segments: list[str]) -> str:
    out: list[str] = []
    last_idx = len(segments) - 1
    for idx, segment in enumerate(segments):
        if segment == "**":
            # Leading/inner ``**`` may also match zero segments.
            out.append(".*" if idx == last_idx else "(?:.*/)?")
            continue
        out.append(_translate_segment(segment))
        if idx != last_idx:
            out.append("/")
    return "".join(out)


@dataclass(frozen=True)
class PatternMatcher:
    """One compiled ignore pattern."""

    text: str
    is_directory_only: bool
    segments: tuple[str, ...]
    regex: re.Pattern[str] | None = field(repr=False, compare=False)

    def matches(self, relative_path: str, is_dir: bool) -> bool:
        """Return whether ``relative_path`` (relative to root) matches this pattern."""
        if self.regex is None:
            return False
        if self.is_directory_only and not is_dir:
            return False
        return self.regex.match(normalize_relative_path(relative_path)) is not None


def compile_pattern(text: str) -> PatternMatcher:
    """Compile one ignore-file line into a ``PatternMatcher``.

    A single leading ``/`` is dropped since every pattern is already anchored
    at the scan root. Unless the pattern is directory-only it also matches any
    path nested under a matching path. ``!`` has no special meaning.
    """
    raw = text.strip()
    is_directory_only = raw.endswith("/")
    body = raw.rstrip("/")
    if body.startswith("/"):
        body = body[1:]
    segments = tuple(segment for segment in body.split("/") if segment)
    if not segments:
        return PatternMatcher(text=text, is_directory_only=is_directory_only, segments=(), regex=None)

    expression = _translate(list(segments))
    if is_directory_only:
        expression = f"^{expression}$"
    else:
        expression = f"^{expression}(?:/.*)?$"
    return PatternMatcher(
        text=text,
        is_directory_only=is_directory_only,
        segments=segments,
        regex=re.compile(expression, re.IGNORECASE | re.DOTALL),
    )


__all__ = [
    "PatternMatcher",
    "compile_pattern",
    "normalize_relative_path",
]
