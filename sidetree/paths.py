"""Path containment, parent and filtering helpers.

Containment is always decided on path components, never raw string prefixes,
so ``/a2`` is not under ``/a``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from fnmatch import fnmatchcase
from pathlib import Path


def is_under(path: Path, directory: Path) -> bool:
    """Return whether ``path`` lies strictly below ``directory``."""
    if path == directory:
        return False
    return path.is_relative_to(directory)


def is_at_or_under(path: Path, directory: Path) -> bool:
    """Return whether ``path`` equals ``directory`` or lies below it."""
    return path == directory or path.is_relative_to(directory)


def parent_of(path: Path) -> Path:
    return path.parent


def substitute_prefix(path: Path, old: Path, new: Path) -> Path:
    """Replace the ``old`` component prefix of ``path`` with ``new``.

    Paths that are neither ``old`` nor under it are returned unchanged.
    """
    if path == old:
        return new
    if not is_under(path, old):
        return path
    return new / path.relative_to(old)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def ignore_predicate(patterns: Iterable[str]) -> Callable[[str], bool] | None:
    """Build a name predicate matching any of the shell-style ``patterns``.

    Returns ``None`` when no patterns are configured so callers can skip the
    check entirely.
    """
    compiled = tuple(pattern for pattern in patterns if pattern)
    if not compiled:
        return None

    def matches(name: str) -> bool:
        return any(fnmatchcase(name, pattern) for pattern in compiled)

    return matches


__all__ = [
    "is_under",
    "is_at_or_under",
    "parent_of",
    "substitute_prefix",
    "is_hidden",
    "ignore_predicate",
]
