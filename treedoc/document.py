"""Assemble the tree outline and file contents into one paginated document.

The default artifact is a PDF: the tree on its own page, then each file under a
bold path heading. Plain text and Markdown renditions are also available.
Entries are read and written one at a time in ordered-file-sequence order. A
file that cannot be read gets an inline error in place of its contents; the
run continues with the next file.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from fpdf import FPDF
from fpdf.enums import XPos, YPos
from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

from .selection import SelectedFile, Selection
from .tree import render_tree

REASON_INCLUDED = "included"
REASON_EXCLUDED = "excluded"
REASON_READ_ERROR = "read-error"

EXCLUDED_PLACEHOLDER = "<excluded: contents omitted>"
EMPTY_PLACEHOLDER = "<empty file>"
TREE_TITLE = "Project Tree:"
TEXT_PAGE_BREAK = "\f\n"
MARKDOWN_PAGE_BREAK = '<div style="page-break-after: always;"></div>\n'
OUTPUT_SUFFIXES = {"pdf": ".pdf", "text": ".txt", "markdown": ".md"}
SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")
PDF_HEADING_FONT = ("Helvetica", 14)
PDF_BODY_FONT = ("Courier", 9)
PDF_LINE_HEIGHT = 4.5

_BACKTICK_RUN_RE = re.compile(r"`{3,}")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_PDF_GLYPHS = str.maketrans({"├": "|", "│": "|", "─": "-", "└": "`"})


def read_text(path: Path) -> str:
    """Read text as UTF-8 (a leading BOM is dropped), falling back to latin-1."""
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        return path.read_text(encoding="latin-1")


def human_readable_size(size: float) -> str:
    """Format ``size`` bytes with up to two decimals, e.g. ``1.5 KB``."""
    order = 0
    value = float(size)
    while value >= 1024 and order < len(SIZE_UNITS) - 1:
        order += 1
        value /= 1024
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[order]}"


def output_file_name(root: Path, output_format: str = "pdf") -> str:
    """Return the artifact name for ``root``: its base name plus format suffix."""
    name = root.resolve().name or "root"
    return f"{name}{OUTPUT_SUFFIXES[output_format]}"


@dataclass(frozen=True)
class DocumentEntry:
    """One ``(relative path, content, reason)`` record handed to the layout."""

    relative_path: str
    content: str
    reason: str = REASON_INCLUDED

    @classmethod
    def included(cls, relative_path: str, content: str) -> DocumentEntry:
        return cls(relative_path, content, REASON_INCLUDED)

    @classmethod
    def excluded(cls, relative_path: str) -> DocumentEntry:
        """Placeholder for a file listed by name with contents omitted."""
        return cls(relative_path, EXCLUDED_PLACEHOLDER, REASON_EXCLUDED)

    @classmethod
    def read_error(cls, relative_path: str, exc: Exception) -> DocumentEntry:
        """Construct an error entry for file read failures."""
        message = getattr(exc, "strerror", None) or str(exc)
        return cls(relative_path, f"<error reading file: {message}>", REASON_READ_ERROR)

    @property
    def is_error(self) -> bool:
        return self.reason == REASON_READ_ERROR


def load_entry(selected: SelectedFile) -> DocumentEntry:
    """Read one selected file into a ``DocumentEntry``; read failures become values."""
    if selected.excluded:
        return DocumentEntry.excluded(selected.relative_path)
    try:
        content = read_text(selected.path)
    except OSError as exc:
        return DocumentEntry.read_error(selected.relative_path, exc)
    return DocumentEntry.included(selected.relative_path, content)


def iter_entries(selection: Selection) -> Iterator[DocumentEntry]:
    """Yield entries lazily in ordered-file-sequence order."""
    for selected in selection.files:
        yield load_entry(selected)


def fence_language(relative_path: str) -> str:
    """Return a pygments lexer alias for a Markdown code fence, or ``""``."""
    try:
        lexer = get_lexer_for_filename(Path(relative_path).name)
    except ClassNotFound:
        return ""
    aliases = getattr(lexer, "aliases", None) or []
    return aliases[0] if aliases else ""


def _fence_for(content: str) -> str:
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(content)), default=2)
    return "`" * max(3, longest + 1)


def pdf_safe(text: str) -> str:
    """Fit ``text`` to the PDF core fonts: ASCII tree glyphs, latin-1 only."""
    text = _CONTROL_RE.sub("", text.translate(_PDF_GLYPHS).expandtabs(4))
    return text.encode("latin-1", "replace").decode("latin-1")


@dataclass(frozen=True)
class DocumentOptions:
    """Layout switches for the assembled artifact."""

    format: str = "pdf"
    flat: bool = False


@dataclass
class DocumentStats:
    """Counters reported after a document has been written."""

    added: int = 0
    excluded: int = 0
    errors: int = 0
    content_chars: int = 0


class DocumentAssembler:
    """Write tree text and entries in the configured format."""

    def __init__(
        self,
        options: DocumentOptions | None = None,
        on_entry: Callable[[DocumentEntry], None] | None = None,
    ) -> None:
        self.options = options or DocumentOptions()
        self.on_entry = on_entry

    @property
    def is_markdown(self) -> bool:
        return self.options.format == "markdown"

    @property
    def is_pdf(self) -> bool:
        return self.options.format == "pdf"

    def _record(self, stats: DocumentStats, entry: DocumentEntry) -> None:
        if entry.is_error:
            stats.errors += 1
        elif entry.reason == REASON_EXCLUDED:
            stats.excluded += 1
        else:
            stats.added += 1
            stats.content_chars += len(entry.content)
        if self.on_entry is not None:
            self.on_entry(entry)

    def write_tree(self, out: TextIO, tree_text: str) -> None:
        if self.is_markdown:
            out.write(f"# {TREE_TITLE.rstrip(':')}\n\n```text\n{tree_text}```\n\n")
            out.write(MARKDOWN_PAGE_BREAK)
        else:
            out.write(f"{TREE_TITLE}\n\n{tree_text}\n")
            out.write(TEXT_PAGE_BREAK)

    def write_entry(self, out: TextIO, entry: DocumentEntry) -> None:
        content = entry.content if entry.content else EMPTY_PLACEHOLDER
        if self.is_markdown:
            out.write(f"\n## {entry.relative_path}\n\n")
            if entry.reason != REASON_INCLUDED or not entry.content:
                out.write(f"_{content}_\n")
                return
            fence = _fence_for(content)
            language = fence_language(entry.relative_path)
            body = content if content.endswith("\n") else content + "\n"
            out.write(f"{fence}{language}\n{body}{fence}\n")
            return

        out.write(f"\n{entry.relative_path}\n{'=' * len(entry.relative_path)}\n\n")
        out.write(content if content.endswith("\n") else content + "\n")

    def assemble(self, out: TextIO, tree_text: str, entries: Iterator[DocumentEntry]) -> DocumentStats:
        """Write the tree page followed by every entry in order."""
        stats = DocumentStats()
        self.write_tree(out, tree_text)
        for entry in entries:
            self.write_entry(out, entry)
            self._record(stats, entry)
        return stats

    def _pdf_heading(self, pdf: FPDF, text: str) -> None:
        family, size = PDF_HEADING_FONT
        pdf.set_font(family, "B", size)
        pdf.multi_cell(0, size * 0.6, pdf_safe(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(2)

    def _pdf_body(self, pdf: FPDF, text: str) -> None:
        family, size = PDF_BODY_FONT
        pdf.set_font(family, "", size)
        pdf.multi_cell(0, PDF_LINE_HEIGHT, pdf_safe(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def assemble_pdf(self, pdf: FPDF, tree_text: str, entries: Iterator[DocumentEntry]) -> DocumentStats:
        """Lay out the tree page, a page break, then every entry under a bold heading."""
        stats = DocumentStats()
        pdf.add_page()
        self._pdf_heading(pdf, TREE_TITLE)
        self._pdf_body(pdf, tree_text)
        pdf.add_page()
        for index, entry in enumerate(entries):
            if index:
                pdf.ln(PDF_LINE_HEIGHT)
            self._pdf_heading(pdf, entry.relative_path)
            self._pdf_body(pdf, entry.content if entry.content else EMPTY_PLACEHOLDER)
            self._record(stats, entry)
        return stats

    def write_document(self, selection: Selection, output_path: Path) -> DocumentStats:
        """Render ``selection`` to ``output_path`` and return write counters."""
        tree_text = render_tree(selection, flat=self.options.flat)
        if self.is_pdf:
            pdf = FPDF()
            pdf.set_auto_page_break(True, margin=15)
            stats = self.assemble_pdf(pdf, tree_text, iter_entries(selection))
            pdf.output(str(output_path))
            return stats
        with output_path.open("w", encoding="utf-8", newline="\n") as out:
            return self.assemble(out, tree_text, iter_entries(selection))


__all__ = [
    "EXCLUDED_PLACEHOLDER",
    "REASON_EXCLUDED",
    "REASON_INCLUDED",
    "REASON_READ_ERROR",
    "DocumentAssembler",
    "DocumentEntry",
    "DocumentOptions",
    "DocumentStats",
    "fence_language",
    "human_readable_size",
    "iter_entries",
    "load_entry",
    "output_file_name",
    "pdf_safe",
    "read_text",
]
