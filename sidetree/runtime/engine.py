"""Expand/collapse state machine for directory, file, and tag nodes.

Opening a directory lists it, joins the status and collapse tasks spawned
for it, and splices the built children after the node. Closing removes the
descendant run. Both keep the open-directory and tag caches in step.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..errors import InvalidState, StaleCacheEntry, Unreadable
from ..file_tree_model import DirectoryChild
from ..git_status import GitStatus, StatusTask, is_repository_root, status_for_code, status_for_path
from ..paths import ignore_predicate, is_at_or_under
from ..symbols import Tag, find_tag
from ..tasks import Task
from ..tree_model import Node, NodeKind, NodeState, TagLocator
from ..watch import PollingWatcher
from .state import ViewerContext

logger = logging.getLogger(__name__)

CollapseChains = dict[Path, tuple[Path, ...]]


@dataclass(frozen=True)
class EngineDeps:
    """Collaborators consumed by the engine."""

    list_children: Callable[..., tuple[list[DirectoryChild], Unreadable | None]]
    extract_tags: Callable[[Path], tuple[Tag, ...]]
    fetch_status: Callable[[Path, bool], StatusTask] | None = None
    spawn_collapse: Callable[[Path], Task[CollapseChains]] | None = None
    watcher: PollingWatcher | None = None
    on_directory_changed: Callable[[Path], None] | None = None
    visit_tag: Callable[[Node], None] | None = None


class ExpandCollapseEngine:
    def __init__(self, context: ViewerContext, deps: EngineDeps) -> None:
        self.context = context
        self.deps = deps
        self._actions: dict[tuple[NodeKind, NodeState], Callable[[int, bool], bool]] = {
            (NodeKind.DIRECTORY, NodeState.CLOSED): self._push_open_directory,
            (NodeKind.DIRECTORY, NodeState.OPEN): self._push_close_directory,
            (NodeKind.FILE, NodeState.CLOSED): self._push_open_tags,
            (NodeKind.FILE, NodeState.OPEN): self._push_close_tags,
            (NodeKind.TAG, NodeState.CLOSED): self._push_open_tags,
            (NodeKind.TAG, NodeState.OPEN): self._push_close_tags,
            (NodeKind.TAG, NodeState.LEAF): self._push_leaf,
        }

    @property
    def _sequence(self):
        return self.context.sequence

    def _index(self, node: Node) -> int:
        index = self._sequence.index_of(node)
        if index is None:
            raise ValueError(f"node {node.key} is not part of this tree")
        return index

    def push(self, node: Node, recursive: bool = False) -> bool:
        """Run the open or close action matching ``node``'s kind and state.

        Returns whether the sequence changed. Raises ``InvalidState`` when the
        kind/state pair has no action.
        """
        action = self._actions.get((node.kind, node.state))
        if action is None:
            raise InvalidState(node.kind, node.state)
        return action(self._index(node), recursive)

    def reopen(self, key: Path | TagLocator, status_task: StatusTask | None = None) -> bool:
        """Re-expand a cached node after a rebuild without re-registering it.

        A node that cannot be located or opened has its cache entry purged.
        """
        try:
            index = self._sequence.find_key(key)
            if index is None:
                raise StaleCacheEntry(key)
        except StaleCacheEntry as exc:
            logger.debug("%s; dropping cache entry", exc)
            self.forget(key)
            return False

        node = self._sequence[index]
        if node.state is NodeState.OPEN:
            return True
        if node.kind is NodeKind.DIRECTORY:
            opened = self.open_directory(index, status_task=status_task, register=False)
        else:
            opened = self.open_tags(index, register=False)
        if not opened:
            self.forget(key)
        return opened

    def forget(self, key: Path | TagLocator) -> None:
        if isinstance(key, TagLocator):
            self.context.forget_tag(key, purge=True)
        else:
            self.context.open_dirs.unregister(key, purge=True)

    # Directories

    def _push_open_directory(self, index: int, recursive: bool) -> bool:
        return self.open_directory(index, recursive=recursive)

    def _push_close_directory(self, index: int, recursive: bool) -> bool:
        self.close_directory(index, purge=recursive)
        return True

    def status_task_for(self, path: Path, recursive: bool, inherited: StatusTask | None = None) -> StatusTask | None:
        """Reuse ``inherited`` unless ``path`` starts its own repository."""
        if not self.context.config.git_enabled or self.deps.fetch_status is None:
            return None
        if inherited is not None and (path == inherited.path or not is_repository_root(path)):
            return inherited
        return self.deps.fetch_status(path, recursive)

    def _is_ignored_name(self) -> Callable[[str], bool] | None:
        return ignore_predicate(self.context.config.ignored_patterns)

    def open_directory(
        self,
        index: int,
        recursive: bool = False,
        status_task: StatusTask | None = None,
        register: bool = True,
    ) -> bool:
        """Materialize the children of the directory at ``index``.

        An unreadable directory is logged and left closed with nothing
        mutated, and a status query spawned for it is cancelled. ``recursive``
        opens every closed child directory too, all sharing ``status_task``.
        """
        sequence = self._sequence
        node = sequence[index]
        config = self.context.config

        inherited = status_task
        status_task = self.status_task_for(node.path, recursive, inherited)
        collapse_task = self.deps.spawn_collapse(node.path) if self.deps.spawn_collapse is not None else None
        children, scan_error = self.deps.list_children(node.path, config.show_hidden, self._is_ignored_name())
        if scan_error is not None:
            logger.warning("%s", scan_error)
            if status_task is not None and status_task is not inherited:
                status_task.cancel()
            return False

        status_map = status_task.join() if status_task is not None else {}
        chains = collapse_task.join() if collapse_task is not None else {}
        child_nodes = self._directory_child_nodes(node, children, status_map, chains)

        sequence.insert_subtree(index, child_nodes)
        node.state = NodeState.OPEN
        if register:
            self.context.open_dirs.register(node)
        self._watch(node.path)

        if recursive:
            for child in [sequence[i] for i in sequence.children(index)]:
                if child.kind is NodeKind.DIRECTORY and child.state is NodeState.CLOSED:
                    self.open_directory(self._index(child), recursive=True, status_task=status_task)
        else:
            self._reenter_directories(node, status_task)
            self._reenter_files(node)
        return True

    def _directory_child_nodes(
        self,
        parent: Node,
        children: list[DirectoryChild],
        status_map: dict[Path, str],
        chains: CollapseChains,
    ) -> list[Node]:
        depth = parent.depth + 1
        hide_ignored = self.context.config.hide_gitignored
        nodes: list[Node] = []
        for child in children:
            status = status_for_code(status_map.get(child.path))
            if hide_ignored and status is GitStatus.IGNORED:
                continue
            if not child.is_dir:
                nodes.append(Node(child.path, depth, NodeKind.FILE, status=status))
                continue
            chain = chains.get(child.path)
            if chain:
                nodes.append(
                    Node(
                        chain[-1],
                        depth,
                        NodeKind.DIRECTORY,
                        logical_parent=parent.path,
                        display="/".join(path.name for path in chain),
                        status=status_for_path(status_map, chain[-1]),
                    )
                )
                continue
            nodes.append(Node(child.path, depth, NodeKind.DIRECTORY, status=status))
        return nodes

    def _reenter_directories(self, node: Node, status_task: StatusTask | None) -> None:
        """Reopen cached expansions directly below a freshly opened directory."""
        cached = self.context.open_dirs.children_of(node.path)
        if not cached:
            return
        sequence = self._sequence
        index = self._index(node)
        visible = {sequence[i].path: sequence[i] for i in sequence.children(index)}
        for path in sorted(cached, key=str):
            child = visible.get(path)
            if child is None or child.kind is not NodeKind.DIRECTORY:
                logger.debug("cached directory %s is gone; dropping cache entry", path)
                self.context.open_dirs.unregister(path, purge=True)
                continue
            if child.state is NodeState.CLOSED:
                if not self.open_directory(self._index(child), status_task=status_task, register=False):
                    self.context.open_dirs.unregister(path, purge=True)

    def _reenter_files(self, node: Node) -> None:
        sequence = self._sequence
        index = self._index(node)
        for child in [sequence[i] for i in sequence.children(index)]:
            if child.kind is not NodeKind.FILE or child.state is not NodeState.CLOSED:
                continue
            cached = self.context.tag_cache.get(child.path, {})
            if cached.get(TagLocator(child.path)) is NodeState.OPEN:
                self.open_tags(self._index(child), register=False)

    def close_directory(self, index: int, purge: bool = False) -> None:
        """Remove the subtree below ``index`` and stop its watches.

        Without ``purge`` nested cache entries are kept, so reopening the
        directory restores the expansions beneath it.
        """
        node = self._sequence[index]
        removed = self._sequence.remove_descendants(index)
        node.state = NodeState.CLOSED
        self._unwatch(node.path)
        for child in removed:
            if child.kind is NodeKind.DIRECTORY and child.state is NodeState.OPEN:
                self._unwatch(child.path)
        self.context.open_dirs.unregister(node.path, purge=purge)
        if purge:
            for file in [file for file in self.context.tag_cache if is_at_or_under(file, node.path)]:
                del self.context.tag_cache[file]

    def _watch(self, path: Path) -> None:
        if self.deps.watcher is not None and self.deps.on_directory_changed is not None:
            self.deps.watcher.watch(path, self.deps.on_directory_changed)

    def _unwatch(self, path: Path) -> None:
        if self.deps.watcher is not None:
            self.deps.watcher.unwatch(path)

    # Files and tags

    def _locator(self, node: Node) -> TagLocator:
        if node.kind is NodeKind.TAG and node.tag is not None:
            return node.tag
        return TagLocator(node.path)

    def _push_open_tags(self, index: int, recursive: bool) -> bool:
        return self.open_tags(index, recursive=recursive)

    def _push_close_tags(self, index: int, recursive: bool) -> bool:
        self.close_tags(index, purge=recursive)
        return True

    def _push_leaf(self, index: int, recursive: bool) -> bool:
        node = self._sequence[index]
        if self.deps.visit_tag is not None:
            self.deps.visit_tag(node)
        return False

    def open_tags(self, index: int, recursive: bool = False, register: bool = True) -> bool:
        """Expand a file or tag node into its tag children."""
        sequence = self._sequence
        node = sequence[index]
        locator = self._locator(node)
        tags = self.deps.extract_tags(locator.file)
        if locator.names:
            parent_tag = find_tag(tags, locator.names, locator.ordinals)
            if parent_tag is None:
                logger.debug("tag %s no longer exists in %s", "/".join(locator.names), locator.file)
                return False
            tags = parent_tag.children
        if not tags:
            logger.info("no tags found in %s", locator.file)
            return False

        depth = node.depth + 1
        seen: dict[str, int] = {}
        child_nodes: list[Node] = []
        for tag in tags:
            ordinal = seen.get(tag.name, 0)
            seen[tag.name] = ordinal + 1
            child_nodes.append(
                Node(
                    locator.file,
                    depth,
                    NodeKind.TAG,
                    state=NodeState.CLOSED if tag.children else NodeState.LEAF,
                    tag=locator.child(tag.name, ordinal),
                    display=tag.name,
                    line=tag.line,
                )
            )
        sequence.insert_subtree(index, child_nodes)
        node.state = NodeState.OPEN
        if register:
            self.context.record_tag(locator, NodeState.OPEN)

        cached = self.context.tag_cache.get(locator.file, {})
        for child in child_nodes:
            if child.state is not NodeState.CLOSED:
                continue
            if recursive:
                self.open_tags(self._index(child), recursive=True)
            elif child.tag is not None and cached.get(child.tag) is NodeState.OPEN:
                self.open_tags(self._index(child), register=False)
        return True

    def close_tags(self, index: int, purge: bool = False) -> None:
        node = self._sequence[index]
        self._sequence.remove_descendants(index)
        node.state = NodeState.CLOSED
        self.context.forget_tag(self._locator(node), purge=purge)


__all__ = ["CollapseChains", "EngineDeps", "ExpandCollapseEngine"]
