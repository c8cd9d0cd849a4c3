"""Error taxonomy for tree-state operations.

Only ``InvalidState`` and ``RenameTargetConflict`` reach callers; the others
are raised and absorbed at the boundary where filesystem or subprocess work
happens.
"""

from __future__ import annotations

from pathlib import Path


class TreeError(Exception):
    """Base class for tree-state errors."""


class Unreadable(TreeError):
    """A directory could not be listed."""

    def __init__(self, path: Path, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"cannot read directory {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidState(TreeError):
    """A node was pushed while in a state with no matching action."""

    def __init__(self, kind: object, state: object) -> None:
        self.kind = kind
        self.state = state
        super().__init__(f"no action for {kind} node in state {state}")


class StaleCacheEntry(TreeError):
    """A cached expansion points at a node that no longer exists."""

    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(f"cached node not found: {key}")


class RenameTargetConflict(TreeError):
    """The destination of a rename already exists."""

    def __init__(self, old: Path, new: Path) -> None:
        self.old = old
        self.new = new
        super().__init__(f"cannot rename {old} to {new}: target exists")


class StatusFetchFailure(TreeError):
    """The version-control status query produced no usable output."""


__all__ = [
    "TreeError",
    "Unreadable",
    "InvalidState",
    "StaleCacheEntry",
    "RenameTargetConflict",
    "StatusFetchFailure",
]
