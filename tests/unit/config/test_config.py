"""Tests for project config loading and user defaults.

Project configs are strict; user defaults fall back safely when malformed.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from treedoc import config
from treedoc.errors import ConfigError


class ProjectConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_project_config(self, payload: str) -> Path:
        path = self.root / config.PROJECT_CONFIG_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
        return path

    def test_find_project_config_only_returns_existing_file(self) -> None:
        self.assertIsNone(config.find_project_config(self.root))
        path = self._write_project_config("{}")
        self.assertEqual(config.find_project_config(self.root), path)

    def test_load_project_config_reads_lists_and_drops_nulls(self) -> None:
        path = self._write_project_config(json.dumps({"extensions": ["cs", None, "txt"], "exclude": ["bin", "obj"]}))
        loaded = config.load_project_config(path)
        self.assertEqual(loaded.extensions, ("cs", "txt"))
        self.assertEqual(loaded.exclude, ("bin", "obj"))

    def test_missing_key_raises_config_error(self) -> None:
        path = self._write_project_config(json.dumps({"extensions": ["cs"]}))
        with self.assertRaises(ConfigError) as ctx:
            config.load_project_config(path)
        self.assertIn("exclude", str(ctx.exception))

    def test_malformed_json_and_wrong_shapes_raise_config_error(self) -> None:
        for payload in ("{not json", "[]", json.dumps({"extensions": "cs", "exclude": []})):
            path = self._write_project_config(payload)
            with self.assertRaises(ConfigError):
                config.load_project_config(path)

    def test_unreadable_project_config_raises_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            config.load_project_config(self.root / "missing.json")


class UserDefaultsTests(unittest.TestCase):
    def test_missing_user_config_uses_builtin_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("treedoc.config.CONFIG_PATH", Path(tmp) / "config.json"):
                self.assertEqual(config.load_config(), {})
                self.assertEqual(config.load_user_defaults(), config.UserDefaults())
                self.assertEqual(config.load_user_defaults().format, "pdf")

    def test_user_defaults_accept_valid_values(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text(
                json.dumps(
                    {
                        "format": "Markdown",
                        "flat": True,
                        "list_excluded": True,
                        "use_gitignore": False,
                        "exclude": ["dist", 3, ""],
                    }
                ),
                encoding="utf-8",
            )
            with mock.patch("treedoc.config.CONFIG_PATH", config_path):
                defaults = config.load_user_defaults()

        self.assertEqual(defaults.format, "markdown")
        self.assertTrue(defaults.flat)
        self.assertTrue(defaults.list_excluded)
        self.assertFalse(defaults.use_gitignore)
        self.assertEqual(defaults.exclude, ("dist",))

    def test_user_defaults_sanitize_invalid_values(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text(
                json.dumps({"format": "docx", "flat": "yes", "list_excluded": 1, "exclude": "dist"}),
                encoding="utf-8",
            )
            with mock.patch("treedoc.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_user_defaults(), config.UserDefaults())

            config_path.write_text("not json", encoding="utf-8")
            with mock.patch("treedoc.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(), {})


if __name__ == "__main__":
    unittest.main()
