"""Filesystem scanning for directory children."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..errors import Unreadable
from ..paths import is_hidden


@dataclass(frozen=True)
class DirectoryChild:
    """One visible directory child."""

    name: str
    path: Path
    is_dir: bool


def list_directory_children(
    directory: Path,
    show_hidden: bool,
    is_ignored: Callable[[str], bool] | None = None,
) -> tuple[list[DirectoryChild], Unreadable | None]:
    """List visible children sorted directories first, then by folded name.

    Returns ``(children, scan_error)``. ``scan_error`` is set when the
    directory cannot be scanned, in which case ``children`` is empty.
    """
    children: list[DirectoryChild] = []
    try:
        with os.scandir(directory) as entries:
            for child in entries:
                name = child.name
                if not show_hidden and is_hidden(name):
                    continue
                if is_ignored is not None and is_ignored(name):
                    continue
                try:
                    # Symlinked directories are listed as directories.
                    is_dir = child.is_dir()
                except OSError:
                    is_dir = False
                children.append(DirectoryChild(name=name, path=Path(child.path), is_dir=is_dir))
    except OSError as exc:
        return [], Unreadable(directory, exc.strerror or str(exc))

    children.sort(key=lambda item: (not item.is_dir, item.name.casefold(), item.name))
    return children, None


__all__ = ["DirectoryChild", "list_directory_children"]
