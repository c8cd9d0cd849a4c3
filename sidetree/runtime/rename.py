"""Propagation of path moves into caches and editor buffers."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import RenameTargetConflict
from ..paths import is_at_or_under, substitute_prefix
from .buffers import EditorBuffers, RecentFiles
from .state import ViewerContext

logger = logging.getLogger(__name__)


class RenamePropagator:
    def __init__(
        self,
        context: ViewerContext,
        buffers: EditorBuffers | None = None,
        recent: RecentFiles | None = None,
    ) -> None:
        self.context = context
        self.buffers = buffers
        self.recent = recent

    def on_rename(self, old: Path, new: Path) -> None:
        """Rewrite every cached reference to ``old`` (or below it) to ``new``."""
        self.context.open_dirs.rename(old, new)
        self.context.rename_tags(old, new)
        self._rebind_buffers(old, new)

    def rename_path(self, old: Path, new: Path) -> None:
        """Move ``old`` to ``new`` on disk, then propagate the move.

        Raises ``RenameTargetConflict`` without touching anything when
        ``new`` already exists.
        """
        if new.exists():
            conflict = RenameTargetConflict(old, new)
            logger.warning("%s", conflict)
            raise conflict
        old.rename(new)
        self.on_rename(old, new)

    def _rebind_buffers(self, old: Path, new: Path) -> None:
        if self.buffers is None:
            return
        for path in self.buffers.bound_paths():
            if not is_at_or_under(path, old):
                continue
            target = substitute_prefix(path, old, new)
            self.buffers.close(path)
            try:
                self.buffers.open(target)
            except OSError as exc:
                logger.warning("cannot reopen %s after rename: %s", target, exc)
                continue
            if self.recent is not None:
                self.recent.remove(path)
                self.recent.add(target)


__all__ = ["RenamePropagator"]
