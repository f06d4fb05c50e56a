"""Tests for the selector scan and ordered file sequence."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from treedoc.classify import TextClassifier
from treedoc.exclusion import ExclusionSet
from treedoc.selection import ExtensionFilter, SelectionPolicy, Selector, select_files


def _write(root: Path, relative: str, text: str = "content\n") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class ExtensionFilterTests(unittest.TestCase):
    def test_parse_prefixes_bare_tokens(self) -> None:
        self.assertEqual(ExtensionFilter.parse("cs, txt").tokens, ("*.cs", "*.txt"))
        self.assertEqual(ExtensionFilter.parse(".md,*.py,md").tokens, ("*.md", "*.py"))
        self.assertEqual(ExtensionFilter.parse("*").tokens, ("*",))

    def test_empty_filter_defaults_to_wildcard(self) -> None:
        self.assertEqual(ExtensionFilter.parse("").tokens, ("*",))
        self.assertEqual(ExtensionFilter.parse(None).tokens, ("*",))
        self.assertEqual(ExtensionFilter.from_tokens([]).tokens, ("*",))

    def test_suffix_match_is_case_insensitive_and_exact(self) -> None:
        extension_filter = ExtensionFilter.parse("cs,txt")
        self.assertTrue(extension_filter.matches("Program.CS"))
        self.assertTrue(extension_filter.matches("notes.txt"))
        self.assertFalse(extension_filter.matches("data.cst"))
        self.assertFalse(extension_filter.matches("readme.md"))


class SelectorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve() / "proj"
        self.root.mkdir()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def select(self, **policy_kwargs):
        return Selector(SelectionPolicy(**policy_kwargs)).select(self.root)

    def test_reserved_directories_are_skipped_at_any_depth(self) -> None:
        _write(self.root, "a.txt")
        _write(self.root, "sub/b.txt")
        _write(self.root, "sub/.git/c.txt")
        _write(self.root, ".git/HEAD")

        selection = self.select()

        self.assertEqual(selection.relative_paths, ["a.txt", "sub/b.txt"])

    def test_extension_filter_limits_selection(self) -> None:
        _write(self.root, "Main.cs")
        _write(self.root, "notes.TXT")
        _write(self.root, "data.cst")
        _write(self.root, "docs/readme.md")

        selection = self.select(extension_filter=ExtensionFilter.parse("cs,txt"))

        self.assertEqual(selection.relative_paths, ["Main.cs", "notes.TXT"])

    def test_literal_exclusion_removes_segments_at_any_depth(self) -> None:
        _write(self.root, "build/output.txt")
        _write(self.root, "src/build/x.txt")
        _write(self.root, "src/keep.txt")

        selection = self.select(exclusion=ExclusionSet.from_config(literals=["build"]))

        self.assertEqual(selection.relative_paths, ["src/keep.txt"])

    def test_directory_only_pattern_prunes_subtree(self) -> None:
        _write(self.root, "out/app.log")
        _write(self.root, "out/nested/more.txt")
        _write(self.root, "main.py")

        selection = self.select(exclusion=ExclusionSet.from_config(patterns=["out/"]))

        self.assertEqual(selection.relative_paths, ["main.py"])
        self.assertEqual([node.name for node in selection.tree.directories], [])

    def test_binary_files_are_dropped_unless_sniffing_disabled(self) -> None:
        _write(self.root, "text.txt", "hello\n")
        _write(self.root, "euro.txt", "€" * 200)
        (self.root / "lib.dll").write_bytes(b"MZ")

        self.assertEqual(self.select().relative_paths, ["text.txt"])
        self.assertEqual(
            self.select(sniff_text=False).relative_paths,
            ["euro.txt", "text.txt"],
        )

    def test_output_artifact_is_never_selected(self) -> None:
        _write(self.root, "proj.txt", "previous run\n")
        _write(self.root, "nested/PROJ.TXT", "copy\n")
        _write(self.root, "real.txt")

        selection = self.select(output_file_name="proj.txt")

        self.assertEqual(selection.relative_paths, ["real.txt"])

    def test_sequence_is_sorted_ordinally_by_relative_path(self) -> None:
        for relative in ("b.txt", "B/z.txt", "a/y.txt", "A.txt"):
            _write(self.root, relative)

        selection = self.select()

        self.assertEqual(selection.relative_paths, sorted(selection.relative_paths))
        self.assertEqual(len(set(selection.relative_paths)), len(selection.relative_paths))

    def test_list_excluded_keeps_files_marked_as_excluded(self) -> None:
        _write(self.root, "secret.env")
        _write(self.root, "app.py")
        _write(self.root, "vendor/lib.py")

        exclusion = ExclusionSet.from_config(literals=["secret.env", "vendor"])
        selection = self.select(exclusion=exclusion, list_excluded=True)

        self.assertEqual(selection.relative_paths, ["app.py", "secret.env"])
        flags = {selected.relative_path: selected.excluded for selected in selection.files}
        self.assertEqual(flags, {"app.py": False, "secret.env": True})

    def test_tree_and_sequence_hold_the_same_files(self) -> None:
        for relative in ("z.txt", "a/b/c.txt", "a/d.txt", "m/n.txt", "m/.git/x.txt"):
            _write(self.root, relative)
        (self.root / "empty_dir").mkdir()

        selection = self.select(exclusion=ExclusionSet.from_config(literals=["n.txt"]))

        tree_files = sorted(selected.relative_path for selected in selection.tree.iter_files())
        self.assertEqual(tree_files, selection.relative_paths)

    def test_unreadable_directory_is_skipped_and_recorded(self) -> None:
        _write(self.root, "ok/a.txt")
        _write(self.root, "locked/b.txt")
        real_scandir = os.scandir
        locked = str(self.root / "locked")

        def fake_scandir(path):
            if str(path) == locked:
                raise PermissionError(13, "Permission denied")
            return real_scandir(path)

        with mock.patch("treedoc.selection.os.scandir", side_effect=fake_scandir):
            selection = self.select()

        self.assertEqual(selection.relative_paths, ["ok/a.txt"])
        self.assertEqual([error.relative_path for error in selection.scan_errors], ["locked"])
        self.assertEqual(selection.scan_errors[0].message, "Permission denied")

    @unittest.skipIf(not hasattr(os, "symlink"), "symlinks unavailable")
    def test_symlinked_directories_are_not_followed(self) -> None:
        _write(self.root, "real/a.txt")
        try:
            os.symlink(self.root / "real", self.root / "link", target_is_directory=True)
        except OSError:
            self.skipTest("cannot create symlinks")

        selection = self.select()

        self.assertEqual(selection.relative_paths, ["real/a.txt"])

    @unittest.skipIf(not hasattr(os, "mkfifo"), "named pipes unavailable")
    def test_named_pipes_are_not_opened(self) -> None:
        _write(self.root, "a.txt")
        os.mkfifo(self.root / "pipe.txt")

        selection = self.select()

        self.assertEqual(selection.relative_paths, ["a.txt"])
        self.assertEqual(selection.tree.files[0].name, "a.txt")

    @unittest.skipIf(not hasattr(os, "symlink"), "symlinks unavailable")
    def test_symlinked_files_are_kept(self) -> None:
        _write(self.root, "real.txt")
        try:
            os.symlink(self.root / "real.txt", self.root / "alias.txt")
        except OSError:
            self.skipTest("cannot create symlinks")

        self.assertEqual(self.select().relative_paths, ["alias.txt", "real.txt"])

    def test_repeated_selection_is_identical(self) -> None:
        for relative in ("b.txt", "a/c.txt", "a/B.txt", "d/e/f.txt"):
            _write(self.root, relative)

        first = self.select()
        second = self.select()

        self.assertEqual(first.files, second.files)
        self.assertEqual(first.tree, second.tree)

    def test_select_files_functional_form(self) -> None:
        _write(self.root, "a.cs")
        _write(self.root, "b.txt")
        _write(self.root, "proj.txt")

        files = select_files(
            self.root,
            ExtensionFilter.parse("*"),
            ExclusionSet(),
            TextClassifier(),
            "proj.txt",
        )

        self.assertEqual([selected.relative_path for selected in files], ["a.cs", "b.txt"])


if __name__ == "__main__":
    unittest.main()
