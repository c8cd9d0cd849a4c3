"""Per-viewer owned tree state."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..git_status import StatusTask
from ..paths import is_at_or_under, substitute_prefix
from ..tree_model import Node, NodeSequence, NodeState, TagLocator
from .config import ViewerConfig
from .open_dirs import OpenDirectoryCache

TagCache = dict[Path, dict[TagLocator, NodeState]]


@dataclass
class ViewerContext:
    """Everything one viewer instance owns; never shared between viewers."""

    config: ViewerConfig = field(default_factory=ViewerConfig)
    root: Path | None = None
    sequence: NodeSequence = field(default_factory=NodeSequence)
    open_dirs: OpenDirectoryCache = field(default_factory=OpenDirectoryCache)
    tag_cache: TagCache = field(default_factory=dict)
    status_in_flight: StatusTask | None = None
    selected_idx: int = 0
    scroll_offset: int = 0

    @property
    def selected_node(self) -> Node | None:
        if not self.sequence or not (0 <= self.selected_idx < len(self.sequence)):
            return None
        return self.sequence[self.selected_idx]

    def record_tag(self, locator: TagLocator, state: NodeState) -> None:
        self.tag_cache.setdefault(locator.file, {})[locator] = state

    def forget_tag(self, locator: TagLocator, purge: bool = False) -> None:
        """Drop ``locator``; with ``purge`` also drop every nested locator."""
        entries = self.tag_cache.get(locator.file)
        if entries is None:
            return
        entries.pop(locator, None)
        if purge:
            for cached in list(entries):
                if cached.is_within(locator):
                    del entries[cached]
        if not entries:
            del self.tag_cache[locator.file]

    def tag_entries_under(self, root: Path) -> list[TagLocator]:
        """Return cached open tag locators under ``root``, outermost first."""
        out = [
            locator
            for file, entries in self.tag_cache.items()
            if is_at_or_under(file, root)
            for locator, state in entries.items()
            if state is NodeState.OPEN
        ]
        out.sort(key=lambda locator: (len(locator.file.parts), str(locator.file), len(locator.names)))
        return out

    def rename_tags(self, old: Path, new: Path) -> None:
        renamed: TagCache = {}
        for file, entries in self.tag_cache.items():
            new_file = substitute_prefix(file, old, new)
            target = renamed.setdefault(new_file, {})
            for locator, state in entries.items():
                target[locator.with_file(substitute_prefix(locator.file, old, new))] = state
        self.tag_cache = renamed


__all__ = ["TagCache", "ViewerContext"]
