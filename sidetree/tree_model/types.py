"""Node datatypes for the materialized tree sequence."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..git_status import GitStatus
from ..paths import parent_of


class NodeKind(Enum):
    DIRECTORY = "directory"
    FILE = "file"
    TAG = "tag"


class NodeState(Enum):
    OPEN = "open"
    CLOSED = "closed"
    LEAF = "leaf"


@dataclass(frozen=True)
class TagLocator:
    """Address of a tag: owning file plus the names leading to the tag.

    ``names == ()`` addresses the file's own tag list. ``ordinals[i]`` picks
    among same-named siblings at level ``i`` (a property getter and setter,
    overloads); missing ordinals default to the first such sibling.
    """

    file: Path
    names: tuple[str, ...] = ()
    ordinals: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        count = len(self.names)
        if len(self.ordinals) != count:
            padded = (*self.ordinals[:count], *(0,) * (count - len(self.ordinals)))
            object.__setattr__(self, "ordinals", padded)

    def child(self, name: str, ordinal: int = 0) -> TagLocator:
        return TagLocator(self.file, (*self.names, name), (*self.ordinals, ordinal))

    def parent(self) -> TagLocator:
        return TagLocator(self.file, self.names[:-1], self.ordinals[:-1])

    def is_within(self, ancestor: TagLocator) -> bool:
        """Return whether ``ancestor`` is this locator or one of its parents."""
        depth = len(ancestor.names)
        return (
            self.file == ancestor.file
            and self.names[:depth] == ancestor.names
            and self.ordinals[:depth] == ancestor.ordinals
        )

    def with_file(self, file: Path) -> TagLocator:
        return TagLocator(file, self.names, self.ordinals)


@dataclass(eq=False)
class Node:
    """One visible tree row.

    Children are positional: they are the deeper run that follows the node in
    its ``NodeSequence``. Tags keep their owning file in ``path`` and their
    structured address in ``tag``.
    """

    path: Path
    depth: int
    kind: NodeKind
    state: NodeState = NodeState.CLOSED
    logical_parent: Path | None = None
    tag: TagLocator | None = None
    display: str | None = None
    line: int | None = None
    status: GitStatus = GitStatus.UNMODIFIED

    @property
    def key(self) -> Path | TagLocator:
        if self.kind is NodeKind.TAG and self.tag is not None:
            return self.tag
        return self.path

    @property
    def parent_key(self) -> Path:
        if self.logical_parent is not None:
            return self.logical_parent
        return parent_of(self.path)

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    @property
    def label(self) -> str:
        if self.display is not None:
            return self.display
        return self.path.name or str(self.path)


__all__ = ["NodeKind", "NodeState", "TagLocator", "Node"]
