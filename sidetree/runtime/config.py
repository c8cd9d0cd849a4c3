"""Persistent JSON config helpers.

Stores viewer preferences: hidden-file visibility, git status options,
directory collapsing, ignored name patterns, and watch polling.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

from ..git_status import DEFAULT_STATUS_TIMEOUT_SECONDS

APP_NAME = "sidetree"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_IGNORED_PATTERNS = ("__pycache__", "*.pyc", ".git")


@dataclass
class ViewerConfig:
    show_hidden: bool = False
    git_enabled: bool = True
    hide_gitignored: bool = False
    git_timeout_seconds: float = DEFAULT_STATUS_TIMEOUT_SECONDS
    collapse_depth: int = 0
    ignored_patterns: tuple[str, ...] = field(default_factory=lambda: DEFAULT_IGNORED_PATTERNS)
    max_recent_files: int = 50
    watch_poll_seconds: float = 0.5


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = CONFIG_PATH if path is None else path
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object], path: Path | None = None) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are ignored to keep runtime behavior non-fatal when
    config cannot be written.
    """
    config_path = CONFIG_PATH if path is None else path
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def _bool(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _nonnegative_int(value: object, default: int) -> int:
    """Booleans and non-integers fall back to ``default``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return max(0, value)


def _positive_float(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value) if value > 0 else default


def _patterns(value: object, default: tuple[str, ...]) -> tuple[str, ...]:
    if not isinstance(value, list):
        return default
    return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())


def load_viewer_config(path: Path | None = None) -> ViewerConfig:
    """Build a ``ViewerConfig`` from persisted JSON, validating each value."""
    data = load_config(path)
    defaults = ViewerConfig()
    return ViewerConfig(
        show_hidden=_bool(data.get("show_hidden"), defaults.show_hidden),
        git_enabled=_bool(data.get("git_enabled"), defaults.git_enabled),
        hide_gitignored=_bool(data.get("hide_gitignored"), defaults.hide_gitignored),
        git_timeout_seconds=_positive_float(data.get("git_timeout_seconds"), defaults.git_timeout_seconds),
        collapse_depth=_nonnegative_int(data.get("collapse_depth"), defaults.collapse_depth),
        ignored_patterns=_patterns(data.get("ignored_patterns"), defaults.ignored_patterns),
        max_recent_files=_nonnegative_int(data.get("max_recent_files"), defaults.max_recent_files),
        watch_poll_seconds=_positive_float(data.get("watch_poll_seconds"), defaults.watch_poll_seconds),
    )


def save_viewer_config(config: ViewerConfig, path: Path | None = None) -> None:
    data = load_config(path)
    data.update(
        {
            "show_hidden": bool(config.show_hidden),
            "git_enabled": bool(config.git_enabled),
            "hide_gitignored": bool(config.hide_gitignored),
            "git_timeout_seconds": float(config.git_timeout_seconds),
            "collapse_depth": max(0, int(config.collapse_depth)),
            "ignored_patterns": list(config.ignored_patterns),
            "max_recent_files": max(0, int(config.max_recent_files)),
            "watch_poll_seconds": float(config.watch_poll_seconds),
        }
    )
    save_config(data, path)


__all__ = [
    "CONFIG_PATH",
    "ViewerConfig",
    "load_config",
    "save_config",
    "load_viewer_config",
    "save_viewer_config",
]
