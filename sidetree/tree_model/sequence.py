"""Pre-order node sequence with depth-based traversal.

No child or sibling links are stored: a node's subtree is the run of deeper
nodes that immediately follows it, so every traversal is a scan over
positions and depths.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from ..git_status import status_for_path
from ..paths import is_at_or_under
from .types import Node, NodeKind, TagLocator


def _check_run(nodes: list[Node], first_depth: int) -> None:
    """Validate that ``nodes`` form a well-shaped subtree run."""
    if not nodes:
        return
    if nodes[0].depth != first_depth:
        raise ValueError(f"subtree must start at depth {first_depth}, got {nodes[0].depth}")
    previous = first_depth
    for node in nodes[1:]:
        if node.depth < first_depth:
            raise ValueError(f"node {node.path} escapes the inserted subtree")
        if node.depth > previous + 1:
            raise ValueError(f"node {node.path} skips a depth level")
        previous = node.depth


class NodeSequence:
    """Index-addressable ordered container of ``Node`` records."""

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._nodes: list[Node] = []
        self.replace(nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def paths(self) -> list[Path]:
        return [node.path for node in self._nodes]

    def replace(self, nodes: Iterable[Node]) -> None:
        """Swap in a whole new materialization."""
        incoming = list(nodes)
        if incoming:
            if incoming[0].depth != 0:
                raise ValueError("sequence must start at depth 0")
            _check_run(incoming, 0)
        self._nodes = incoming

    def clear(self) -> None:
        self._nodes = []

    # Lookups

    def index_of(self, node: Node) -> int | None:
        for idx, candidate in enumerate(self._nodes):
            if candidate is node:
                return idx
        return None

    def find(self, path: Path) -> int | None:
        """Return the index of the file or directory node at ``path``."""
        for idx, node in enumerate(self._nodes):
            if node.kind is not NodeKind.TAG and node.path == path:
                return idx
        return None

    def find_tag(self, locator: TagLocator) -> int | None:
        if not locator.names:
            return self.find(locator.file)
        for idx, node in enumerate(self._nodes):
            if node.kind is NodeKind.TAG and node.tag == locator:
                return idx
        return None

    def find_key(self, key: Path | TagLocator) -> int | None:
        if isinstance(key, TagLocator):
            return self.find_tag(key)
        return self.find(key)

    # Traversal

    def subtree_end(self, index: int) -> int:
        """Return the index just past ``index``'s descendant run."""
        depth = self._nodes[index].depth
        end = index + 1
        while end < len(self._nodes) and self._nodes[end].depth > depth:
            end += 1
        return end

    def next_non_descendant(self, index: int) -> int | None:
        end = self.subtree_end(index)
        return end if end < len(self._nodes) else None

    def next_sibling(self, index: int) -> int | None:
        candidate = self.next_non_descendant(index)
        if candidate is None:
            return None
        if self._nodes[candidate].depth != self._nodes[index].depth:
            return None
        return candidate

    def prev_sibling(self, index: int) -> int | None:
        depth = self._nodes[index].depth
        idx = index - 1
        while idx >= 0:
            candidate_depth = self._nodes[idx].depth
            if candidate_depth == depth:
                return idx
            if candidate_depth < depth:
                return None
            idx -= 1
        return None

    def parent_index(self, index: int) -> int | None:
        depth = self._nodes[index].depth
        idx = index - 1
        while idx >= 0:
            if self._nodes[idx].depth < depth:
                return idx
            idx -= 1
        return None

    def children(self, index: int) -> list[int]:
        """Return indices of the direct children of ``index``."""
        child_depth = self._nodes[index].depth + 1
        out: list[int] = []
        idx = index + 1
        while idx < len(self._nodes):
            depth = self._nodes[idx].depth
            if depth < child_depth:
                break
            if depth == child_depth:
                out.append(idx)
            idx += 1
        return out

    def nodes_in(self, index: int) -> list[Node]:
        """Return ``index`` and its descendants in order."""
        return self._nodes[index : self.subtree_end(index)]

    # Mutation

    def insert_subtree(self, at: int, nodes: Iterable[Node]) -> None:
        """Splice a freshly built subtree directly after ``at``.

        The run is validated before the list is touched, so a malformed
        subtree leaves the sequence unchanged.
        """
        incoming = list(nodes)
        _check_run(incoming, self._nodes[at].depth + 1)
        self._nodes[at + 1 : at + 1] = incoming

    def remove_descendants(self, index: int) -> list[Node]:
        end = self.subtree_end(index)
        removed = self._nodes[index + 1 : end]
        del self._nodes[index + 1 : end]
        return removed

    def remove_subtree(self, index: int) -> list[Node]:
        end = self.subtree_end(index)
        removed = self._nodes[index:end]
        del self._nodes[index:end]
        return removed

    def apply_status(self, status_map: dict[Path, str], scope: Path) -> int:
        """Apply a late status result to nodes under ``scope``.

        Results are keyed by path, so entries whose nodes were renamed or
        deleted meanwhile are ignored. Returns the number of changed nodes.
        """
        changed = 0
        for node in self._nodes:
            if node.kind is NodeKind.TAG or not is_at_or_under(node.path, scope):
                continue
            status = status_for_path(status_map, node.path)
            if status is not node.status:
                node.status = status
                changed += 1
        return changed


__all__ = ["NodeSequence"]
