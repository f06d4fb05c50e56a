"""Text/binary classification for candidate files.

A fixed extension deny-list rejects obvious binaries without touching the
file. Everything else is sampled: the first ``TEXT_SAMPLE_CHARS`` characters
are decoded and the share of ASCII code points decides.
"""

from __future__ import annotations

import stat
from dataclasses import dataclass
from pathlib import Path

TEXT_SAMPLE_CHARS = 8_000
TEXT_ASCII_RATIO = 0.9
SAMPLE_ENCODING = "utf-8"

BINARY_EXTENSIONS = frozenset(
    {
        # executables and libraries
        ".exe", ".dll", ".so", ".dylib", ".com", ".msi", ".app",
        ".o", ".obj", ".a", ".lib", ".pdb", ".class", ".jar", ".war",
        ".pyc", ".pyo", ".pyd", ".wasm",
        # caches and generic binary/data
        ".cache", ".bin", ".dat", ".db", ".sqlite", ".pack", ".idx",
        # disk images
        ".iso", ".img", ".dmg", ".vhd", ".vhdx", ".vmdk",
        # archives and compression
        ".zip", ".tar", ".gz", ".tgz", ".bz2", ".xz", ".7z", ".rar", ".zst", ".lz", ".lzma", ".cab",
    }
)


def has_binary_extension(path: Path, deny_list: frozenset[str] = BINARY_EXTENSIONS) -> bool:
    """Return whether ``path`` has a deny-listed extension (case-insensitive)."""
    return path.suffix.lower() in deny_list


def ascii_ratio(sample: str) -> float:
    """Return the fraction of code points in ``sample`` that are <= 127."""
    if not sample:
        return 1.0
    return sum(1 for ch in sample if ord(ch) <= 127) / len(sample)


@dataclass(frozen=True)
class TextClassifier:
    """Decide whether a file should be emitted as text."""

    sample_chars: int = TEXT_SAMPLE_CHARS
    min_ascii_ratio: float = TEXT_ASCII_RATIO
    deny_list: frozenset[str] = BINARY_EXTENSIONS

    def is_text(self, path: Path) -> bool:
        """Return ``True`` for text files.

        Empty files are text. Anything but a regular file, and any ``OSError``
        while sampling, classifies the file as binary so unreadable files never
        reach the document.
        """
        if has_binary_extension(path, self.deny_list):
            return False
        try:
            if not stat.S_ISREG(path.stat().st_mode):
                return False
            with path.open("r", encoding=SAMPLE_ENCODING, errors="replace") as handle:
                sample = handle.read(self.sample_chars)
        except OSError:
            return False
        return ascii_ratio(sample) >= self.min_ascii_ratio


__all__ = [
    "BINARY_EXTENSIONS",
    "TEXT_ASCII_RATIO",
    "TEXT_SAMPLE_CHARS",
    "TextClassifier",
    "ascii_ratio",
    "has_binary_extension",
]
