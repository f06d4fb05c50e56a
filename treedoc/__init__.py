"""Public package surface for treedoc.

Exports the selection engine types and ``main`` for programmatic CLI use.
"""

from __future__ import annotations

from .classify import TextClassifier
from .exclusion import ExclusionSet
from .patterns import PatternMatcher, compile_pattern
from .selection import ExtensionFilter, Selection, SelectionPolicy, Selector, select_files
from .tree import render_tree


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "ExclusionSet",
    "ExtensionFilter",
    "PatternMatcher",
    "Selection",
    "SelectionPolicy",
    "Selector",
    "TextClassifier",
    "compile_pattern",
    "main",
    "render_tree",
    "select_files",
]
