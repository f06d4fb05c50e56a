"""Render a ``Selection`` as project-tree outline text.

The recursive form mirrors the directory structure kept by the selector; the
flat form lists the ordered file sequence one path per line.
"""

from __future__ import annotations

from .selection import DirectoryNode, Selection

BRANCH = "├── "
CONTINUATION = "│   "


def _walk(directory: DirectoryNode, depth: int, lines_out: list[str]) -> None:
    """Emit file rows, then subdirectory rows depth-first."""
    prefix = CONTINUATION * depth
    if directory.scan_error is not None:
        lines_out.append(f"{prefix}{BRANCH}<error: {directory.scan_error}>")
        return
    for selected in directory.files:
        lines_out.append(f"{prefix}{BRANCH}{selected.name}")
    for child in directory.directories:
        lines_out.append(f"{prefix}{BRANCH}{child.name}/")
        _walk(child, depth + 1, lines_out)


def render_recursive_tree(tree: DirectoryNode) -> str:
    """Render ``tree`` with its root name as the unindented first line."""
    lines_out = [tree.name]
    _walk(tree, 0, lines_out)
    return "\n".join(lines_out) + "\n"


def render_flat_tree(selection: Selection) -> str:
    """Render one branch line per file in sequence order."""
    return "".join(f"{BRANCH}{selected.relative_path}\n" for selected in selection.files)


def render_tree(selection: Selection, flat: bool = False) -> str:
    """Return outline text for ``selection``."""
    if flat:
        return render_flat_tree(selection)
    return render_recursive_tree(selection.tree)


__all__ = [
    "BRANCH",
    "CONTINUATION",
    "render_flat_tree",
    "render_recursive_tree",
    "render_tree",
]
