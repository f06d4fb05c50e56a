"""Fatal error types raised before any output artifact is written.

Per-entry failures (unreadable files or directories) are recorded as values on
the selection/document models instead of being raised.
"""

from __future__ import annotations

from pathlib import Path


class TreedocError(Exception):
    """Base class for errors that abort a run."""


class ConfigError(TreedocError):
    """A supplied JSON config is malformed or missing required keys."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class DirectoryNotFoundError(TreedocError):
    """The resolved root does not exist or is not a directory."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Directory not found: {path}")
        self.path = path
