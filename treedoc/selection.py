"""Filesystem scanning and file selection.

One depth-first scan of the root decides every entry's fate: reserved
directories and the output artifact are skipped, exclusion rules prune files
and whole subtrees, and files must match the extension filter and look like
text. The resulting ``Selection`` carries both the directory structure (for the
tree outline) and the ordered file sequence (for content emission).
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .classify import TextClassifier, has_binary_extension
from .exclusion import ExclusionSet

RESERVED_DIRECTORIES = frozenset({".git", ".hg", ".svn", ".vs", ".idea"})
WILDCARD_TOKEN = "*"


def _normalize_extension_token(token: str) -> str | None:
    """Normalize ``cs``, ``.cs`` and ``*.cs`` to ``*.cs``; keep ``*`` as-is."""
    stripped = token.strip()
    if not stripped:
        return None
    if stripped == WILDCARD_TOKEN:
        return WILDCARD_TOKEN
    if stripped.startswith("*."):
        stripped = stripped[2:]
    elif stripped.startswith("."):
        stripped = stripped[1:]
    if not stripped:
        return None
    return f"*.{stripped}"


@dataclass(frozen=True)
class ExtensionFilter:
    """Ordered glob tokens deciding which file names are candidates."""

    tokens: tuple[str, ...] = (WILDCARD_TOKEN,)

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> ExtensionFilter:
        """Build a filter from bare or globbed tokens, dropping blanks and duplicates."""
        normalized: list[str] = []
        for token in tokens:
            value = _normalize_extension_token(token)
            if value is not None and value not in normalized:
                normalized.append(value)
        if not normalized:
            return cls()
        return cls(tuple(normalized))

    @classmethod
    def parse(cls, text: str | None) -> ExtensionFilter:
        """Parse a comma-separated list such as ``"cs,txt"``."""
        if text is None:
            return cls()
        return cls.from_tokens(text.split(","))

    @property
    def matches_everything(self) -> bool:
        return WILDCARD_TOKEN in self.tokens

    def matches(self, name: str) -> bool:
        """Return whether file ``name`` matches any token (case-insensitive)."""
        if self.matches_everything:
            return True
        lowered = name.lower()
        for token in self.tokens:
            pattern = token.lower()
            suffix = pattern[1:]
            if "*" not in suffix and "?" not in suffix and "[" not in suffix:
                if lowered.endswith(suffix):
                    return True
                continue
            if fnmatch.fnmatchcase(lowered, pattern):
                return True
        return False

    def __str__(self) -> str:
        return ", ".join(self.tokens)


@dataclass(frozen=True)
class CandidateEntry:
    """Derived selection facts for one scanned path."""

    path: Path
    relative_path: str
    is_dir: bool
    is_excluded_by_name: bool = False
    is_ignored_by_pattern: bool = False
    is_text: bool | None = None
    matches_extension: bool | None = None

    @property
    def is_excluded(self) -> bool:
        return self.is_excluded_by_name or self.is_ignored_by_pattern


@dataclass(frozen=True)
class SelectedFile:
    """One file in the ordered file sequence.

    ``excluded`` is only ever true when the policy lists excluded files by name
    instead of dropping them.
    """

    path: Path
    relative_path: str
    excluded: bool = False

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class DirectoryNode:
    """Directory kept by the selector with its selected direct children."""

    path: Path
    relative_path: str
    files: tuple[SelectedFile, ...] = ()
    directories: tuple["DirectoryNode", ...] = ()
    scan_error: str | None = None

    @property
    def name(self) -> str:
        return self.path.name or self.path.resolve().name or str(self.path)

    def iter_files(self) -> Iterable[SelectedFile]:
        """Yield every selected file at or below this directory."""
        yield from self.files
        for directory in self.directories:
            yield from directory.iter_files()


@dataclass(frozen=True)
class ScanError:
    """A directory that could not be listed and was skipped."""

    relative_path: str
    message: str


@dataclass(frozen=True)
class Selection:
    """Result of one selector pass."""

    root: Path
    tree: DirectoryNode
    files: tuple[SelectedFile, ...]
    scan_errors: tuple[ScanError, ...] = ()

    @property
    def relative_paths(self) -> list[str]:
        return [selected.relative_path for selected in self.files]


@dataclass(frozen=True)
class SelectionPolicy:
    """Selector inputs plus the optional behavior switches."""

    extension_filter: ExtensionFilter = field(default_factory=ExtensionFilter)
    exclusion: ExclusionSet = field(default_factory=ExclusionSet)
    classifier: TextClassifier = field(default_factory=TextClassifier)
    output_file_name: str | None = None
    reserved_directories: frozenset[str] = RESERVED_DIRECTORIES
    list_excluded: bool = False
    sniff_text: bool = True


def _join_relative(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def file_sort_key(selected: SelectedFile) -> str:
    """Ordinal key for the ordered file sequence."""
    return selected.relative_path


def child_sort_key(name: str) -> tuple[str, str]:
    """Case-insensitive name order with a case-sensitive tiebreak."""
    return (name.casefold(), name)


class Selector:
    """Walk a root directory and decide which entries are included."""

    def __init__(self, policy: SelectionPolicy | None = None) -> None:
        self.policy = policy or SelectionPolicy()
        self._output_name = (self.policy.output_file_name or "").casefold()

    def is_output_artifact(self, name: str) -> bool:
        return bool(self._output_name) and name.casefold() == self._output_name

    def classify(self, path: Path, relative_path: str, is_dir: bool) -> CandidateEntry:
        """Return the ``CandidateEntry`` facts for one scanned path."""
        exclusion = self.policy.exclusion
        by_name = exclusion.is_excluded_by_name(relative_path)
        by_pattern = exclusion.is_ignored_by_pattern(relative_path, is_dir)
        if is_dir:
            return CandidateEntry(path, relative_path, True, by_name, by_pattern)
        matches_extension = self.policy.extension_filter.matches(path.name)
        is_text: bool | None = None
        if matches_extension:
            classifier = self.policy.classifier
            if self.policy.sniff_text:
                is_text = classifier.is_text(path)
            else:
                is_text = not has_binary_extension(path, classifier.deny_list)
        return CandidateEntry(
            path,
            relative_path,
            False,
            is_excluded_by_name=by_name,
            is_ignored_by_pattern=by_pattern,
            is_text=is_text,
            matches_extension=matches_extension,
        )

    def _list_children(self, directory: Path) -> tuple[list[tuple[str, Path, bool]], OSError | None]:
        """List ``(name, path, is_dir)`` children; only directories and regular files are kept."""
        children: list[tuple[str, Path, bool]] = []
        try:
            with os.scandir(directory) as entries:
                for child in entries:
                    try:
                        is_dir = child.is_dir(follow_symlinks=False)
                        # Symlinked directories, pipes, sockets and devices.
                        if not is_dir and not child.is_file():
                            continue
                    except OSError:
                        continue
                    children.append((child.name, Path(child.path), is_dir))
        except OSError as exc:
            return [], exc
        children.sort(key=lambda item: child_sort_key(item[0]))
        return children, None

    def select(self, root: Path) -> Selection:
        """Scan ``root`` once and return the tree plus ordered file sequence."""
        scan_errors: list[ScanError] = []

        def walk(directory: Path, relative: str) -> DirectoryNode:
            children, scan_error = self._list_children(directory)
            if scan_error is not None:
                message = scan_error.strerror or str(scan_error)
                scan_errors.append(ScanError(relative, message))
                return DirectoryNode(directory, relative, scan_error=message)

            files: list[SelectedFile] = []
            directories: list[DirectoryNode] = []
            for name, child_path, is_dir in children:
                if self.is_output_artifact(name):
                    continue
                child_relative = _join_relative(relative, name)
                if is_dir:
                    if name in self.policy.reserved_directories:
                        continue
                    if self.policy.exclusion.is_excluded(child_relative, True):
                        continue
                    directories.append(walk(child_path, child_relative))
                    continue

                if not self.policy.list_excluded and self.policy.exclusion.is_excluded(child_relative, False):
                    continue
                entry = self.classify(child_path, child_relative, False)
                if not entry.matches_extension or not entry.is_text:
                    continue
                files.append(SelectedFile(child_path, child_relative, excluded=entry.is_excluded))

            return DirectoryNode(directory, relative, tuple(files), tuple(directories))

        tree = walk(root, "")
        unique = {selected.relative_path: selected for selected in tree.iter_files()}
        ordered = tuple(sorted(unique.values(), key=file_sort_key))
        return Selection(root=root, tree=tree, files=ordered, scan_errors=tuple(scan_errors))


def select_files(
    root: Path,
    extension_filter: ExtensionFilter,
    exclusion: ExclusionSet,
    classifier: TextClassifier,
    output_file_name: str | None,
) -> list[SelectedFile]:
    """Return the ordered file sequence for ``root`` with default switches."""
    policy = SelectionPolicy(
        extension_filter=extension_filter,
        exclusion=exclusion,
        classifier=classifier,
        output_file_name=output_file_name,
    )
    return list(Selector(policy).select(root).files)


__all__ = [
    "RESERVED_DIRECTORIES",
    "CandidateEntry",
    "DirectoryNode",
    "ExtensionFilter",
    "ScanError",
    "SelectedFile",
    "Selection",
    "SelectionPolicy",
    "Selector",
    "child_sort_key",
    "file_sort_key",
    "select_files",
]
