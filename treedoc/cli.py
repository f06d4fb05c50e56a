"""Command-line front door for treedoc.

Parses CLI options, resolves the root and configuration, runs one selection
pass and writes the document. Positional arguments take the shapes
``[ROOT] [EXTENSIONS]``, ``EXTENSIONS`` alone when it contains a comma,
or ``*`` for every file under the current directory.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from .config import OUTPUT_FORMATS, find_project_config, load_project_config, load_user_defaults
from .document import (
    REASON_INCLUDED,
    DocumentAssembler,
    DocumentEntry,
    DocumentOptions,
    DocumentStats,
    human_readable_size,
    output_file_name,
)
from .errors import ConfigError, DirectoryNotFoundError, TreedocError
from .exclusion import ExclusionSet
from .gitignore import default_ignore_file, load_ignore_patterns
from .selection import ExtensionFilter, Selection, SelectionPolicy, Selector


@dataclass(frozen=True)
class RunSettings:
    """Fully resolved inputs for one run."""

    root: Path
    extension_filter: ExtensionFilter
    exclude: tuple[str, ...]
    ignore_patterns: tuple[str, ...]
    output_path: Path
    output_format: str = "pdf"
    flat: bool = False
    list_excluded: bool = False
    sniff_text: bool = True
    quiet: bool = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treedoc",
        description="Render a project tree and the contents of its text files into one document.",
        epilog=(
            "Ignore patterns are matched against the full path from ROOT: '*.pyc' only matches "
            "top-level files; use '**/*.pyc' to match at any depth."
        ),
    )
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="ROOT_OR_EXTENSIONS",
        help="[ROOT] [EXTENSIONS]; EXTENSIONS is a comma list such as 'cs,txt' or '*'.",
    )
    parser.add_argument("--config", metavar="PATH", help="Project JSON config with 'extensions' and 'exclude'.")
    parser.add_argument(
        "--exclude",
        metavar="NAME",
        action="append",
        default=[],
        help="File/directory name or relative path to exclude (repeatable).",
    )
    parser.add_argument("--ignore-file", metavar="PATH", help="Gitignore-syntax file (default: ROOT/.gitignore).")
    parser.add_argument("--no-gitignore", action="store_true", help="Do not read ROOT/.gitignore.")
    parser.add_argument(
        "--list-excluded",
        action="store_true",
        default=None,
        help="List excluded files by name with contents omitted instead of dropping them.",
    )
    parser.add_argument("--no-sniff", action="store_true", help="Skip the text/binary content check.")
    parser.add_argument("--flat", action="store_true", default=None, help="List files as flat paths in the tree.")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, default=None, help="Output format (default: pdf).")
    parser.add_argument("--output", metavar="PATH", help="Output path (default: ./<root name>.<ext>).")
    parser.add_argument("--quiet", action="store_true", help="Only report errors.")
    return parser


def split_targets(targets: Sequence[str], cwd: Path) -> tuple[Path, str | None]:
    """Map positional arguments to ``(root, extensions)``.

    ``extensions`` is ``None`` only when no positional argument was given, in
    which case a project config may supply it.
    """
    if not targets:
        return cwd, None
    if len(targets) == 1:
        value = targets[0]
        if value.strip() == "*":
            return cwd, "*"
        if "," in value:
            return cwd, value
        return Path(value), "*"
    if len(targets) == 2:
        return Path(targets[0]), targets[1]
    raise ValueError("expected at most two positional arguments: [ROOT] [EXTENSIONS]")


def _load_ignore_file(path: Path, explicit: bool, stderr: TextIO) -> tuple[str, ...]:
    if explicit and not path.is_file():
        raise ConfigError(path, "ignore file not found")
    try:
        return tuple(load_ignore_patterns(path))
    except OSError as exc:
        if explicit:
            raise ConfigError(path, f"cannot read ignore file: {exc.strerror or exc}") from exc
        stderr.write(f"Warning: cannot read {path}: {exc.strerror or exc}\n")
        return ()


def resolve_settings(args: argparse.Namespace, cwd: Path, stderr: TextIO | None = None) -> RunSettings:
    """Resolve CLI options, project config and user defaults into ``RunSettings``.

    Raises ``DirectoryNotFoundError`` for a missing root and ``ConfigError`` for
    unusable config or ignore files.
    """
    stderr = stderr or sys.stderr
    defaults = load_user_defaults()
    root, extensions_text = split_targets(args.targets, cwd)
    if not root.is_dir():
        raise DirectoryNotFoundError(root)

    exclude: list[str] = list(defaults.exclude)
    config_path: Path | None = None
    if args.config is not None:
        config_path = Path(args.config)
    elif extensions_text is None:
        config_path = find_project_config(root)

    extension_filter = ExtensionFilter.parse(extensions_text)
    if config_path is not None:
        project = load_project_config(config_path)
        if extensions_text is None:
            extension_filter = ExtensionFilter.from_tokens(project.extensions)
        exclude.extend(project.exclude)
    exclude.extend(args.exclude)

    if args.ignore_file is not None:
        ignore_patterns = _load_ignore_file(Path(args.ignore_file), True, stderr)
    elif defaults.use_gitignore and not args.no_gitignore:
        ignore_patterns = _load_ignore_file(default_ignore_file(root), False, stderr)
    else:
        ignore_patterns = ()

    output_format = args.format or defaults.format
    output_path = Path(args.output) if args.output else cwd / output_file_name(root, output_format)
    return RunSettings(
        root=root,
        extension_filter=extension_filter,
        exclude=tuple(exclude),
        ignore_patterns=ignore_patterns,
        output_path=output_path,
        output_format=output_format,
        flat=defaults.flat if args.flat is None else args.flat,
        list_excluded=defaults.list_excluded if args.list_excluded is None else args.list_excluded,
        sniff_text=not args.no_sniff,
        quiet=args.quiet,
    )


def build_policy(settings: RunSettings) -> SelectionPolicy:
    """Construct the selector policy for ``settings``."""
    return SelectionPolicy(
        extension_filter=settings.extension_filter,
        exclusion=ExclusionSet.from_config(settings.exclude, settings.ignore_patterns),
        output_file_name=settings.output_path.name,
        list_excluded=settings.list_excluded,
        sniff_text=settings.sniff_text,
    )


def run(
    settings: RunSettings,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> tuple[Selection, DocumentStats]:
    """Select files under the root and write the document."""
    out = stdout or sys.stdout
    err = stderr or sys.stderr

    def report(line: str) -> None:
        if not settings.quiet:
            out.write(line + "\n")

    def on_entry(entry: DocumentEntry) -> None:
        if entry.is_error:
            err.write(f"Error processing file: {entry.relative_path} - {entry.content}\n")
        elif entry.content and entry.reason == REASON_INCLUDED:
            report(f"Added: {entry.relative_path} ({human_readable_size(len(entry.content))})")

    report(f"Extensions: {settings.extension_filter}")
    report(f"Excluded: {', '.join(settings.exclude)}")

    selection = Selector(build_policy(settings)).select(settings.root)
    for scan_error in selection.scan_errors:
        err.write(f"Skipped directory: {scan_error.relative_path or '.'} ({scan_error.message})\n")

    assembler = DocumentAssembler(
        DocumentOptions(format=settings.output_format, flat=settings.flat),
        on_entry=on_entry,
    )
    stats = assembler.write_document(selection, settings.output_path)
    size = human_readable_size(settings.output_path.stat().st_size)
    report(f"Document '{settings.output_path.name}' created successfully! Size: {size}")
    return selection, stats


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments and write the document for the resolved root."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = resolve_settings(args, Path.cwd())
    except ValueError as exc:
        parser.error(str(exc))
    except TreedocError as exc:
        raise SystemExit(str(exc)) from exc
    try:
        run(settings)
    except OSError as exc:
        raise SystemExit(f"Cannot write {settings.output_path}: {exc.strerror or exc}") from exc


if __name__ == "__main__":
    main()
