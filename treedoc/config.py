"""JSON configuration helpers.

Two sources are read:
- a project config (``.vscode/treedoc.json`` under the root, or ``--config``)
  holding ``extensions`` and ``exclude``; it is loaded strictly and any
  problem raises ``ConfigError``
- optional user defaults under the platform config directory; these are
  loaded defensively and fall back to built-in defaults when malformed
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .errors import ConfigError

APP_NAME = "treedoc"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH
PROJECT_CONFIG_PATH = Path(".vscode") / "treedoc.json"
OUTPUT_FORMATS = ("pdf", "text", "markdown")


@dataclass(frozen=True)
class ProjectConfig:
    """Extension and exclusion lists from a project config file."""

    path: Path
    extensions: tuple[str, ...]
    exclude: tuple[str, ...]


@dataclass(frozen=True)
class UserDefaults:
    """Per-user defaults applied before command-line options."""

    format: str = "pdf"
    flat: bool = False
    list_excluded: bool = False
    use_gitignore: bool = True
    exclude: tuple[str, ...] = ()


def find_project_config(root: Path) -> Path | None:
    """Return the project config path under ``root`` when it exists."""
    candidate = root / PROJECT_CONFIG_PATH
    return candidate if candidate.is_file() else None


def _string_list(path: Path, data: dict[str, object], key: str) -> tuple[str, ...]:
    """Return ``data[key]`` as strings; ``null`` items are dropped."""
    if key not in data:
        raise ConfigError(path, f"missing required key {key!r}")
    value = data[key]
    if not isinstance(value, list):
        raise ConfigError(path, f"{key!r} must be a list of strings")
    items: list[str] = []
    for item in value:
        if item is None:
            continue
        if not isinstance(item, str):
            raise ConfigError(path, f"{key!r} must be a list of strings")
        items.append(item)
    return tuple(items)


def load_project_config(path: Path) -> ProjectConfig:
    """Load a project config strictly.

    Raises ``ConfigError`` when the file cannot be read, is not a JSON object,
    or lacks either the ``extensions`` or ``exclude`` list.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(path, f"cannot read config: {exc.strerror or exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(path, "top-level value must be a JSON object")
    return ProjectConfig(
        path=path,
        extensions=_string_list(path, data, "extensions"),
        exclude=_string_list(path, data, "exclude"),
    )


def load_config() -> dict[str, object]:
    """Load the user defaults JSON object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _load_bool(data: dict[str, object], key: str, default: bool) -> bool:
    """Only explicit booleans are accepted; anything else uses ``default``."""
    value = data.get(key)
    return value if isinstance(value, bool) else default


def load_user_defaults() -> UserDefaults:
    """Return validated user defaults, dropping invalid values."""
    data = load_config()
    output_format = data.get("format")
    if not isinstance(output_format, str) or output_format.strip().lower() not in OUTPUT_FORMATS:
        output_format = UserDefaults.format
    raw_exclude = data.get("exclude")
    exclude: tuple[str, ...] = ()
    if isinstance(raw_exclude, list):
        exclude = tuple(item for item in raw_exclude if isinstance(item, str) and item.strip())
    return UserDefaults(
        format=output_format.strip().lower(),
        flat=_load_bool(data, "flat", UserDefaults.flat),
        list_excluded=_load_bool(data, "list_excluded", UserDefaults.list_excluded),
        use_gitignore=_load_bool(data, "use_gitignore", UserDefaults.use_gitignore),
        exclude=exclude,
    )


__all__ = [
    "CONFIG_PATH",
    "OUTPUT_FORMATS",
    "PROJECT_CONFIG_PATH",
    "ProjectConfig",
    "UserDefaults",
    "find_project_config",
    "load_config",
    "load_project_config",
    "load_user_defaults",
]
