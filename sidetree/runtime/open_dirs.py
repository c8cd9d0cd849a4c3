"""Record of expanded directories keyed by logical parent.

The cache outlives the node sequence: full rebuilds replay it, renames
rewrite it, and only selecting a new root clears it.
"""

from __future__ import annotations

from pathlib import Path

from ..paths import is_at_or_under, substitute_prefix
from ..tree_model import Node


class OpenDirectoryCache:
    def __init__(self) -> None:
        self._entries: dict[Path, set[Path]] = {}

    def __len__(self) -> int:
        return sum(len(members) for members in self._entries.values())

    def as_dict(self) -> dict[Path, set[Path]]:
        return {key: set(members) for key, members in self._entries.items()}

    def clear(self) -> None:
        self._entries.clear()

    def children_of(self, key: Path) -> set[Path]:
        return set(self._entries.get(key, ()))

    def is_expanded(self, path: Path) -> bool:
        return any(path in members for members in self._entries.values())

    def register(self, node: Node) -> None:
        self.add(node.parent_key, node.path)

    def add(self, key: Path, path: Path) -> None:
        # A path is cached under at most one key.
        self._discard(path)
        self._entries.setdefault(key, set()).add(path)

    def _discard(self, path: Path) -> bool:
        for key, members in list(self._entries.items()):
            if path in members:
                members.discard(path)
                if not members:
                    del self._entries[key]
                return True
        return False

    def unregister(self, path: Path, purge: bool = False) -> None:
        """Remove ``path``; with ``purge`` also drop its nested expansions."""
        self._discard(path)
        if not purge:
            return
        for child in self._entries.pop(path, set()):
            self.unregister(child, purge=True)

    def entries_under(self, root: Path) -> list[tuple[Path, Path]]:
        """Return ``(key, member)`` pairs at/under ``root``, parents first."""
        pairs = [
            (key, member)
            for key, members in self._entries.items()
            for member in members
            if is_at_or_under(key, root) or is_at_or_under(member, root)
        ]
        pairs.sort(key=lambda pair: (len(pair[1].parts), str(pair[1])))
        return pairs

    def rename(self, old: Path, new: Path) -> None:
        renamed: dict[Path, set[Path]] = {}
        for key, members in self._entries.items():
            new_key = substitute_prefix(key, old, new)
            renamed.setdefault(new_key, set()).update(
                substitute_prefix(member, old, new) for member in members
            )
        self._entries = renamed


__all__ = ["OpenDirectoryCache"]
