"""Public surface of the tree engine: one ``TreeViewer`` per side panel."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ..file_tree_model import list_directory_children, spawn_collapse_detection
from ..git_status import StatusTask, fetch_git_status
from ..paths import ignore_predicate, substitute_prefix
from ..symbols import Tag, extract_tags
from ..tasks import FutureTask, Task
from ..tree_model import Node, NodeKind, NodeState
from ..watch import PollingWatcher
from .buffers import BufferRegistry, EditorBuffers, RecentFiles
from .config import ViewerConfig
from .engine import CollapseChains, EngineDeps, ExpandCollapseEngine
from .refresh import RefreshController, RefreshScheduler
from .rename import RenamePropagator
from .state import ViewerContext

logger = logging.getLogger(__name__)


class TreeViewer:
    """Owns one tree's sequence, caches, watches, and background work.

    All methods must be called from the thread that owns the viewer, except
    ``request_refresh`` which may be called from anywhere.
    """

    def __init__(
        self,
        config: ViewerConfig | None = None,
        *,
        buffers: EditorBuffers | None = None,
        recent: RecentFiles | None = None,
        watcher: PollingWatcher | None = None,
        extract_tags: Callable[[Path], tuple[Tag, ...]] = extract_tags,
        fetch_status: Callable[[Path, bool], StatusTask] | None = None,
        on_cursor_moved: Callable[[Node], None] | None = None,
        visit_tag: Callable[[Node], None] | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.context = ViewerContext(config=config or ViewerConfig())
        self.watcher = watcher
        self._monotonic = monotonic
        self._last_watch_poll = 0.0
        self._executor: ThreadPoolExecutor | None = None
        self._background_status: tuple[Path, StatusTask, FutureTask[dict[Path, str]]] | None = None

        if fetch_status is None:
            timeout = self.context.config.git_timeout_seconds

            def fetch_status(path: Path, recursive: bool) -> StatusTask:
                return fetch_git_status(path, recursive, timeout_seconds=timeout)

        self._fetch_status = fetch_status
        self._refreshes = RefreshScheduler(self.refresh)
        self.engine = ExpandCollapseEngine(
            self.context,
            EngineDeps(
                list_children=list_directory_children,
                extract_tags=extract_tags,
                fetch_status=fetch_status,
                spawn_collapse=self._spawn_collapse if self.context.config.collapse_depth > 0 else None,
                watcher=watcher,
                on_directory_changed=self._on_directory_changed,
                visit_tag=visit_tag,
            ),
        )
        self.refresher = RefreshController(self.context, self.engine, watcher=watcher, on_cursor_moved=on_cursor_moved)
        if buffers is None:
            registry = BufferRegistry(max_recent=self.context.config.max_recent_files)
            buffers = registry
            recent = registry if recent is None else recent
        self.buffers = buffers
        self.recent = recent
        self.renamer = RenamePropagator(self.context, buffers=buffers, recent=recent)

    @property
    def root(self) -> Path | None:
        return self.context.root

    @property
    def sequence(self):
        return self.context.sequence

    @property
    def selected_node(self) -> Node | None:
        return self.context.selected_node

    @property
    def scroll_offset(self) -> int:
        return self.context.scroll_offset

    @scroll_offset.setter
    def scroll_offset(self, value: int) -> None:
        self.context.scroll_offset = max(0, value)

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="sidetree-worker")
        return self._executor

    def _spawn_collapse(self, path: Path) -> Task[CollapseChains]:
        config = self.context.config
        return spawn_collapse_detection(
            self._pool(),
            path,
            config.collapse_depth,
            config.show_hidden,
            ignore_predicate(config.ignored_patterns),
        )

    def _on_directory_changed(self, path: Path) -> None:
        logger.debug("change detected in %s", path)
        self.request_refresh()

    def _teardown(self) -> None:
        context = self.context
        context.sequence.clear()
        context.open_dirs.clear()
        context.tag_cache.clear()
        context.selected_idx = 0
        context.scroll_offset = 0
        self._cancel_background_status()
        if self.watcher is not None:
            self.watcher.clear()

    def initialize(self, root: Path) -> None:
        """Show ``root``; a different root than before discards all caches."""
        root = Path(root).resolve()
        if root == self.context.root and len(self.context.sequence):
            self.refresh()
            return
        self._teardown()
        self.context.root = root
        self.context.sequence.replace([Node(root, 0, NodeKind.DIRECTORY)])
        self.engine.push(self.context.sequence[0])

    def push(self, node: Node, recursive: bool = False) -> bool:
        """Toggle ``node``; the cursor moves to it if its row was removed."""
        selected = self.context.selected_node
        changed = self.engine.push(node, recursive=recursive)
        if selected is not None:
            index = self.context.sequence.index_of(selected)
            if index is None:
                index = self.context.sequence.index_of(node)
            if index is not None:
                self.context.selected_idx = index
        return changed

    def refresh(self, preferred_path: Path | None = None) -> None:
        self.refresher.refresh(preferred_path=preferred_path)

    def request_refresh(self) -> None:
        self._refreshes.request()

    def process_pending_refresh(self) -> int:
        return self._refreshes.process_pending()

    def on_rename(self, old: Path, new: Path) -> None:
        """Propagate a move that already happened on disk and rebuild."""
        selected = self.context.selected_node
        self.renamer.on_rename(old, new)
        preferred = None
        if selected is not None and selected.kind is not NodeKind.TAG:
            preferred = substitute_prefix(selected.path, old, new)
        self.refresh(preferred_path=preferred)

    def rename_path(self, old: Path, new: Path) -> None:
        """Move ``old`` to ``new`` on disk, then propagate and rebuild."""
        self.renamer.rename_path(old, new)
        self.refresh(preferred_path=new)

    def nodes_in(self, subtree_root: Node | Path | None = None) -> list[Node]:
        sequence = self.context.sequence
        if subtree_root is None:
            return list(sequence)
        if isinstance(subtree_root, Node):
            index = sequence.index_of(subtree_root)
        else:
            index = sequence.find(Path(subtree_root))
        if index is None:
            return []
        return sequence.nodes_in(index)

    def is_expanded(self, path: Path) -> bool:
        """Return whether the directory at ``path`` is shown expanded."""
        index = self.context.sequence.find(Path(path))
        return index is not None and self.context.sequence[index].state is NodeState.OPEN

    def expanded_paths(self) -> set[Path]:
        return {
            node.path
            for node in self.context.sequence
            if node.kind is NodeKind.DIRECTORY and node.state is NodeState.OPEN
        }

    def select(self, path: Path) -> bool:
        index = self.context.sequence.find(Path(path))
        if index is None:
            return False
        self.context.selected_idx = index
        return True

    def refresh_status(self) -> None:
        """Start a background status query for the whole root."""
        root = self.context.root
        if root is None or not self.context.config.git_enabled:
            return
        self._cancel_background_status()
        task = self._fetch_status(root, True)
        # git blocks once its output fills the pipe, so the output is read on a worker.
        self._background_status = (root, task, FutureTask(self._pool().submit(task.join)))

    def _cancel_background_status(self) -> None:
        if self._background_status is None:
            return
        _scope, task, _pending = self._background_status
        self._background_status = None
        task.cancel()

    def _apply_background_status(self) -> int:
        if self._background_status is None:
            return 0
        scope, _task, pending = self._background_status
        if not pending.done():
            return 0
        self._background_status = None
        return self.context.sequence.apply_status(pending.join(), scope)

    def poll(self) -> int:
        """Apply finished background status, poll watches, run queued refreshes.

        Returns the number of refreshes that ran.
        """
        self._apply_background_status()
        if self.watcher is not None:
            now = self._monotonic()
            if (now - self._last_watch_poll) >= self.context.config.watch_poll_seconds:
                self._last_watch_poll = now
                self.watcher.poll()
        return self._refreshes.process_pending()

    def close(self) -> None:
        self._cancel_background_status()
        if self.watcher is not None:
            self.watcher.clear()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None


__all__ = ["TreeViewer"]
