"""Full rebuild of the node sequence with cache replay and cursor relocation.

A refresh throws away the materialized view (never the cached expansion
data), reopens the root, replays cached expansions parents first, and puts
the cursor back where it was.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..git_status import StatusTask
from ..paths import is_under
from ..tree_model import Node, NodeKind, NodeState, TagLocator
from ..watch import PollingWatcher
from .engine import ExpandCollapseEngine
from .state import ViewerContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResumePoint:
    """Cursor position captured before a rebuild."""

    path: Path | None
    tag: TagLocator | None
    scroll_offset: int
    line: int


def capture_resume_point(context: ViewerContext, preferred_path: Path | None = None) -> ResumePoint:
    node = context.selected_node
    path: Path | None = preferred_path
    tag: TagLocator | None = None
    if path is None and node is not None:
        if node.kind is NodeKind.TAG:
            tag = node.tag
        else:
            path = node.path
    return ResumePoint(path=path, tag=tag, scroll_offset=context.scroll_offset, line=context.selected_idx)


class RefreshController:
    def __init__(
        self,
        context: ViewerContext,
        engine: ExpandCollapseEngine,
        watcher: PollingWatcher | None = None,
        on_cursor_moved: Callable[[Node], None] | None = None,
    ) -> None:
        self.context = context
        self.engine = engine
        self.watcher = watcher
        self.on_cursor_moved = on_cursor_moved

    def refresh(self, preferred_path: Path | None = None) -> None:
        """Rebuild the sequence from the root and relocate the cursor.

        ``preferred_path`` overrides the captured cursor path, e.g. with the
        destination of a rename.
        """
        context = self.context
        root = context.root
        if root is None:
            return
        resume = capture_resume_point(context, preferred_path)

        if self.watcher is not None:
            self.watcher.clear()
        context.sequence.replace([Node(root, 0, NodeKind.DIRECTORY)])
        status_task = self.engine.status_task_for(root, recursive=True)
        context.status_in_flight = status_task
        try:
            if not self.engine.open_directory(0, status_task=status_task, register=False) and status_task is not None:
                status_task.cancel()
            self._replay_directories(root, context.status_in_flight)
            self._replay_tags(root)
        finally:
            context.status_in_flight = None
        self._relocate(resume)

    def _node_is_open(self, key: Path | TagLocator) -> bool:
        index = self.context.sequence.find_key(key)
        return index is not None and self.context.sequence[index].state is NodeState.OPEN

    def _is_dormant(self, parent: Path | TagLocator) -> bool:
        """Return whether an entry sits below a parent that is merely closed.

        Such entries are kept for when the parent opens again; entries whose
        parent is open or gone are replayed (and purged when stale).
        """
        if self._node_is_open(parent):
            return False
        if isinstance(parent, TagLocator):
            return parent.file.is_file()
        return parent.is_dir()

    def _replay_directories(self, root: Path, status_task: StatusTask | None) -> None:
        sequence = self.context.sequence
        for key, member in self.context.open_dirs.entries_under(root):
            if not is_under(member, root):
                continue
            index = sequence.find(member)
            if index is not None and sequence[index].state is NodeState.OPEN:
                continue
            if index is None and self._is_dormant(key):
                continue
            self.engine.reopen(member, status_task=status_task)

    def _replay_tags(self, root: Path) -> None:
        sequence = self.context.sequence
        for locator in self.context.tag_entries_under(root):
            index = sequence.find_tag(locator)
            if index is not None and sequence[index].state is NodeState.OPEN:
                continue
            parent: Path | TagLocator
            if locator.names:
                parent = locator.parent()
            else:
                parent = locator.file.parent
            if index is None and self._is_dormant(parent):
                continue
            self.engine.reopen(locator)

    def _relocate(self, resume: ResumePoint) -> None:
        context = self.context
        sequence = context.sequence
        index: int | None = None
        if resume.path is not None:
            index = sequence.find(resume.path)
        if index is None and resume.tag is not None:
            index = sequence.find_tag(resume.tag)
            if index is None:
                index = sequence.find(resume.tag.file)
        if index is None:
            index = min(resume.line, len(sequence) - 1)
        context.selected_idx = max(0, index)
        context.scroll_offset = max(0, min(resume.scroll_offset, len(sequence) - 1))
        node = context.selected_node
        if node is not None and self.on_cursor_moved is not None:
            self.on_cursor_moved(node)


class RefreshScheduler:
    """Serialize refresh requests onto the thread that owns the tree.

    ``request`` may be called from any thread. Requests arriving while a
    refresh runs collapse into one follow-up refresh.
    """

    def __init__(self, refresh: Callable[[], None]) -> None:
        self._refresh = refresh
        self._lock = threading.Lock()
        self._pending = False
        self._running = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending

    def request(self) -> None:
        with self._lock:
            self._pending = True

    def process_pending(self) -> int:
        """Run queued refreshes on the calling thread; returns how many ran."""
        with self._lock:
            if self._running:
                return 0
            self._running = True
        ran = 0
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        break
                    self._pending = False
                self._refresh()
                ran += 1
        finally:
            with self._lock:
                self._running = False
        return ran


__all__ = ["RefreshController", "RefreshScheduler", "ResumePoint", "capture_resume_point"]
